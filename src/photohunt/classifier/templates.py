"""Prompt text sent to the image classifier."""

from __future__ import annotations

VERIFICATION_PROMPT = """
You are an image verification system for a photo scavenger hunt game. Your task is to:

1. Determine if the image contains or represents the keyword: "{keyword}"
2. Detect if the image appears to be taken of a screen (phone, computer, tablet, etc.) to prevent cheating

ANTI-CHEATING DETECTION:
- Look for signs that this photo was taken of another screen/device:
  - Screen glare, reflections, or pixelation typical of digital displays
  - Visible screen bezels, frames, or device edges
  - Image appears to be a screenshot or photo of a screen
  - Unnatural lighting that suggests a backlit display
  - Moire patterns or screen door effects
  - Browser UI elements, app interfaces, or digital watermarks

KEYWORD VERIFICATION:
- The image should contain the actual object, concept, or scene related to "{keyword}"
- Look for real-world, physical manifestations of the keyword
- Be reasonably flexible but maintain accuracy

RESPONSE FORMAT:
Respond with a JSON object containing:
{{
  "success": boolean (true if keyword is present AND image is not from a screen),
  "confidence": number (0-100, your confidence in the verification),
  "isScreen": boolean (true if image appears to be taken of a screen),
  "explanation": "Brief explanation of your decision"
}}

Analyze this image:"""


def render_prompt(keyword: str) -> str:
    return VERIFICATION_PROMPT.format(keyword=keyword)


def verdict_message(keyword: str, *, passed: bool, is_screen_capture: bool) -> str:
    """Player-facing message for a classifier verdict."""
    if is_screen_capture:
        return "Photo appears to be taken of a screen. Please take a photo of the real object!"
    if not passed:
        return f'This image doesn\'t appear to contain "{keyword}". Try again!'
    return f'Great! Found "{keyword}" in your photo!'
