"""
Oracle: grounding phrases for difficult moments.
"""

import random
from typing import Optional

# Grouped: safety, surrender, body, environment, emotional
PHRASES = (
    # Safety & grounding
    "You are safe. This is just a chemical reaction.",
    "You took a substance. It will end.",
    "Your body knows how to breathe on its own.",
    "Gravity is holding you. Trust the floor.",
    "You are in a safe container.",
    "Time feels strange, but it is moving forward.",
    "No feeling is final.",
    "You are exactly where you are supposed to be.",
    "The world will be there when you get back.",
    "You are the observer, not the storm.",
    # Surrender & flow
    "Don't fight the current. Float downstream.",
    "Curiosity over fear.",
    "Lean into the experience.",
    "Say 'yes' to what is happening.",
    "Let the thoughts drift by like clouds.",
    "Surrender to the moment.",
    "Trust your own mind.",
    "There is nothing you need to do right now.",
    "Let go of the need to control.",
    "Ride the wave, don't try to stop it.",
    # Somatic awareness
    "Unclench your jaw. Drop your shoulders.",
    "Soften your gaze.",
    "Breathe into your belly.",
    "Wiggle your toes. Feel your feet.",
    "Sip some water. Nourish your cells.",
    "Place a hand on your heart.",
    "Stretch your arms. Take up space.",
    "Check your posture. Sit tall.",
    "Relax your forehead.",
    "Wrap yourself in a blanket.",
    # Environment & action
    "Change the music. Change the vibe.",
    "Look at something green.",
    "Turn down the lights.",
    "Step into a new room.",
    "Touch a texture you like.",
    "It is okay to close your eyes.",
    "It is okay to open your eyes.",
    "Find a soft place to rest.",
    "Listen to the silence between the sounds.",
    # Emotional & spiritual
    "Be gentle with yourself.",
    "You are allowed to feel this.",
    "Laugh at the absurdity.",
    "You are loved.",
    "This is a learning experience.",
    "Forgive yourself for feeling overwhelmed.",
    "There is beauty in this chaos.",
    "You are connected to everything.",
    "Your mind is vast and resilient.",
    "Whatever comes up, greet it with kindness.",
)


def consult(rng: Optional[random.Random] = None, exclude: Optional[str] = None) -> str:
    """Pick a phrase, never repeating `exclude` back to back."""
    rng = rng or random
    pool = [p for p in PHRASES if p != exclude] or list(PHRASES)
    return rng.choice(pool)
