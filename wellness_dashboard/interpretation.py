"""
Human-readable explanations for detected moods.
"""

import random
from collections.abc import Sequence

INTERPRETATIONS: dict[str, tuple[str, ...]] = {
    "happy": (
        "You're radiating positivity today! Your happiness is reflected in how you express yourself.",
        "It's wonderful to see you in such a great mood. Keep embracing those positive feelings!",
        "Your joyful energy is evident. This positive state can really boost your overall wellbeing.",
    ),
    "sad": (
        "I notice you're going through a difficult time. It's okay to feel sad - these emotions are valid.",
        "You seem to be processing some challenging feelings. Remember that it's normal to have ups and downs.",
        "Your emotional honesty shows strength. Acknowledging sadness is an important part of healing.",
    ),
    "angry": (
        "I can sense some frustration in your words. Anger often signals that something important to you needs attention.",
        "You're experiencing some intense emotions. It's healthy to acknowledge anger rather than suppress it.",
        "Your feelings of anger are valid. Let's work on understanding what's triggering these emotions.",
    ),
    "anxious": (
        "I notice some worry in your message. Anxiety can be overwhelming, but you're taking the right step by talking about it.",
        "You seem to be feeling anxious about something. Remember that anxiety is treatable and you're not alone.",
        "Your concerns are being heard. Anxiety often tries to protect us, even when it feels uncomfortable.",
        "It sounds like a lot is weighing on you. Slowing down your breathing can help take the edge off.",
    ),
    "calm": (
        "You seem centered and peaceful right now. This balanced state is wonderful for your mental wellbeing.",
        "There's a sense of tranquility in how you're expressing yourself today. Enjoy this peaceful moment.",
        "Your calm energy is evident. This balanced emotional state is great for reflection and growth.",
    ),
    "tired": (
        "You sound like you might be feeling drained. Rest and self-care are important for your wellbeing.",
        "Fatigue can affect our emotional state. Make sure you're getting enough rest and taking care of yourself.",
        "It seems like you might need some time to recharge. Listen to your body's signals.",
    ),
    "confused": (
        "You seem to be working through some uncertainty. It's okay not to have all the answers right now.",
        "Confusion often comes before clarity. You're in a process of figuring things out, and that's perfectly normal.",
        "Mixed feelings are completely valid. Sometimes we need time to sort through complex emotions.",
    ),
    "excited": (
        "Your excitement is contagious! It's great to have something to look forward to.",
        "There's a real spark of energy in what you're sharing. Enjoy this momentum!",
        "You sound genuinely thrilled. Moments like this are worth savoring.",
    ),
}

DEFAULT_INTERPRETATIONS: tuple[str, ...] = (
    "Your emotional state is being recognized and validated. Every feeling you have is important.",
)

MAX_EVIDENCE = 3


class InterpretationGenerator:
    """Picks an explanatory message for a mood from a fixed template pool."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def interpret(self, mood_name: str, evidence: Sequence[str] = ()) -> str:
        pool = INTERPRETATIONS.get(mood_name, DEFAULT_INTERPRETATIONS)
        text = self.rng.choice(pool)
        if evidence:
            noted = ", ".join(f'"{e}"' for e in list(evidence)[:MAX_EVIDENCE])
            text = f"{text} (Noticed: {noted}.)"
        return text
