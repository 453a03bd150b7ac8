"""
BEHAVIORAL CONSTANTS
--------------------
Single source of truth for the tunable defaults of the session server.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Deployment overrides come from config.AppConfig, which falls back to
  the values below.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Audio Format (PCM16 mono @ 16kHz)
# =============================================================================

AUDIO_SAMPLE_RATE_HZ: Final[int] = 16_000
AUDIO_CHANNELS: Final[int] = 1
AUDIO_SAMPLE_WIDTH_BYTES: Final[int] = 2  # PCM16 (signed 16-bit)

PCM16_MIN: Final[int] = -32_768
PCM16_MAX: Final[int] = 32_767
PCM16_FULL_SCALE: Final[int] = 32_768

WAV_HEADER_BYTES: Final[int] = 44

# =============================================================================
# Segmentation / Endpointing
# =============================================================================

# Long-form sessions wait for a real pause; short-form sessions cut fast.
LONG_FORM_SILENCE_TIMEOUT_MS: Final[int] = 2_000
SHORT_FORM_SILENCE_TIMEOUT_MS: Final[int] = 300

# Hard safety cap on a single segment
MAX_SEGMENT_SECONDS_DEFAULT: Final[float] = 10.0

SEGMENTATION_PROFILE_LONG: Final[str] = "long"
SEGMENTATION_PROFILE_SHORT: Final[str] = "short"

# =============================================================================
# Barge-in
# =============================================================================

# ~1.5% of full 16-bit scale
INTERRUPTION_THRESHOLD_DEFAULT: Final[int] = 500

# =============================================================================
# Transcript noise filter
# =============================================================================

TRANSCRIPT_MIN_CHARS: Final[int] = 5
TRANSCRIPT_NOISE_DENYLIST: Final[Tuple[str, ...]] = (
    "okay.",
    "thank you.",
    ".",
)

# =============================================================================
# Context retrieval
# =============================================================================

RETRIEVAL_TOP_K: Final[int] = 3
RETRIEVAL_SEPARATOR: Final[str] = "\n\n---\n\n"

# =============================================================================
# Reply generation
# =============================================================================

REPLY_MAX_TOKENS: Final[int] = 150
REPLY_FALLBACK_TEXT: Final[str] = (
    "I'm sorry, I'm having trouble answering right now. Could you say that again?"
)

# =============================================================================
# Speech synthesis
# =============================================================================

TTS_PROVIDER_OPENAI: Final[str] = "openai"
TTS_PROVIDER_ELEVENLABS: Final[str] = "elevenlabs"
TTS_PROVIDER_SPEECHMATICS: Final[str] = "speechmatics"

# =============================================================================
# Observability
# =============================================================================

LOG_PREVIEW_CHARS: Final[int] = 100


# =============================================================================
# Helper Functions
# =============================================================================

def seconds_to_samples(duration_s: float, sample_rate_hz: int = AUDIO_SAMPLE_RATE_HZ) -> int:
    """
    Convert a duration in seconds to a whole number of samples (floor).

    Non-positive input returns 0.
    """
    if duration_s <= 0:
        return 0
    return int(duration_s * sample_rate_hz)
