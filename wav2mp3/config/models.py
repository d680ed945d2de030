from typing import Optional
from pydantic import BaseModel, Field, field_validator


def normalize_suffix(value: str) -> str:
    value = value.strip()
    if not value or value == ".":
        raise ValueError("suffix must not be empty")
    return value if value.startswith(".") else f".{value}"


class GeneralConfig(BaseModel):
    # None = one worker per available processor
    threads: Optional[int] = Field(default=None, gt=0)
    source_suffix: str = ".wav"
    target_suffix: str = ".mp3"
    poll_interval_s: float = Field(default=1.0, gt=0)
    fail_on_error: bool = False
    clean_temp: bool = True
    log_path: Optional[str] = None
    debug: bool = False

    @field_validator("source_suffix", "target_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        return normalize_suffix(v)


class EncoderConfig(BaseModel):
    """LAME settings handed to ffmpeg's libmp3lame encoder.

    Defaults follow LAME's own: stereo, 44.1 kHz, 128 kbps CBR,
    joint stereo, algorithm quality 5.
    """
    ffmpeg_path: str = "ffmpeg"
    bitrate_kbps: int = Field(default=128, ge=8, le=320)
    sample_rate: int = Field(default=44100, gt=0)
    channels: int = Field(default=2, ge=1, le=2)
    joint_stereo: bool = True
    quality: int = Field(default=5, ge=0, le=9)  # 0=best 9=worst


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
