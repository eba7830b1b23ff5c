"""Persona definitions: tone for prompts and strictness for verification."""

from enum import StrEnum


class Persona(StrEnum):
    """Named personality profile used for prompts and verification thresholds."""

    CLASSIC = "classic"
    BARONESS = "baroness"
    TOUGH_LIFECOACH = "tough_lifecoach"
    WARRIOR = "warrior"
    WELLNESS_X = "wellness_x"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def tagline(self) -> str:
        return _TAGLINES[self]

    @property
    def voice_guidance(self) -> str:
        return _VOICE_GUIDANCE[self]

    @property
    def dream_vision_style(self) -> str:
        """Style block appended to the stylized room prompt."""
        return _DREAM_VISION_STYLES[self]

    @property
    def verification_mode_name(self) -> str:
        return _VERIFICATION_MODES[self][0]

    @property
    def verification_mode_description(self) -> str:
        return _VERIFICATION_MODES[self][1]

    @property
    def confidence_threshold(self) -> float:
        """Confidence below which a positive verdict is annotated as low confidence."""
        return _CONFIDENCE_THRESHOLDS[self]

    @property
    def is_trusted(self) -> bool:
        """Trusted personas turn manual completions into verified ones."""
        return self is Persona.WELLNESS_X


_DISPLAY_NAMES = {
    Persona.CLASSIC: "Babcia",
    Persona.BARONESS: "The Baroness",
    Persona.TOUGH_LIFECOACH: "Tough Lifecoach",
    Persona.WARRIOR: "Warrior Babcia",
    Persona.WELLNESS_X: "Wellness-X",
}

_TAGLINES = {
    Persona.CLASSIC: "Guilt with love",
    Persona.BARONESS: "Old money shade",
    Persona.TOUGH_LIFECOACH: "Fixes your mess",
    Persona.WARRIOR: "Attack the mess",
    Persona.WELLNESS_X: "Baymax vibes",
}

_VOICE_GUIDANCE = {
    Persona.CLASSIC: (
        "Speak like a loving Polish grandmother. Use 'Oj' and gentle guilt. "
        "Mention that you brought food. Be warm but notice everything."
    ),
    Persona.BARONESS: "Speak with refined aristocratic disappointment. Use 'darling' and subtle shade.",
    Persona.TOUGH_LIFECOACH: "Speak like an efficient office manager. Be direct, slightly exasperated.",
    Persona.WARRIOR: "Speak like a battle commander. Use caps for emphasis. Treat cleaning as an epic quest.",
    Persona.WELLNESS_X: "Speak like a calm robot companion. Use 'initiating' and 'protocol'.",
}

_DREAM_VISION_STYLES = {
    Persona.CLASSIC: (
        "2. STYLE (Medium: Traditional Chinese Paper Cut):\n"
        "   - Medium: Intricate red paper cutting (jianzhi)\n"
        "   - Colors: Red paper on white background\n"
        "   - Texture: Delicate cut paper with fine details\n"
        "   - Style: Traditional Chinese folk art, silhouette"
    ),
    Persona.BARONESS: (
        "2. STYLE (Medium: Victorian Oil Painting):\n"
        "   - Medium: Elegant Victorian oil painting aesthetic\n"
        "   - Colors: Rich jewel tones - burgundy, gold, emerald, royal purple\n"
        "   - Lighting: Dramatic golden hour warmth with visible brushstrokes\n"
        "   - Finish: Luxurious painterly texture, aristocratic atmosphere"
    ),
    Persona.TOUGH_LIFECOACH: (
        "2. STYLE (Medium: Ink and Watercolor Illustration):\n"
        "   - Medium: Hand-drawn ink line art with watercolor wash\n"
        "   - Line Work: Clean black ink outlines, architectural style\n"
        "   - Colors: Soft watercolor washes - sage green, warm beige, dusty rose\n"
        "   - Finish: Visible paper texture, artistic hand-drawn quality"
    ),
    Persona.WARRIOR: (
        "2. STYLE (Medium: Art Deco Illustration):\n"
        "   - Medium: Bold Art Deco poster style\n"
        "   - Colors: Gold, black, cream, deep teal\n"
        "   - Style: Geometric shapes, bold lines, 1920s glamour\n"
        "   - Mood: Luxurious, powerful, dramatic"
    ),
    Persona.WELLNESS_X: (
        "2. STYLE (Medium: 1950s Retro Advertisement):\n"
        "   - Medium: Vintage 1950s magazine advertisement\n"
        "   - Colors: Bright cheerful pastels and primary colors\n"
        "   - Style: Clean mid-century modern illustration\n"
        "   - Mood: Optimistic, bright, Atomic Age aesthetic"
    ),
}

_VERIFICATION_MODES = {
    Persona.CLASSIC: ("Supportive", "Gentle and encouraging. Progress counts, not perfection."),
    Persona.BARONESS: ("Ruthless", "Uncompromising standards. Evidence must be unmistakable."),
    Persona.TOUGH_LIFECOACH: ("Hard", "Direct and demanding. Solid proof beats excuses."),
    Persona.WARRIOR: ("Standard", "Focused and balanced. Clear progress wins."),
    Persona.WELLNESS_X: ("Trusted", "Trust-first and calm. Gentle accountability."),
}

_CONFIDENCE_THRESHOLDS = {
    Persona.CLASSIC: 0.3,
    Persona.BARONESS: 0.7,
    Persona.TOUGH_LIFECOACH: 0.6,
    Persona.WARRIOR: 0.45,
    Persona.WELLNESS_X: 0.2,
}
