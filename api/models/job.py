"""
Job models and FFmpeg argument construction

A job either carries ``simple_options`` (a preset-driven option set) or raw
FFmpeg arguments (advanced mode). Simple options are translated into the three
advanced argument fields once, when the job is decoded.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from api.utils.error_handlers import MissingFieldError


class QualityPreset(str, Enum):
    """Quality presets understood by simple options."""
    ULTRAFAST = "ultrafast"
    FAST = "fast"
    BALANCED = "balanced"
    QUALITY = "quality"
    SLOW = "slow"
    ULTRASLOW = "ultraslow"


DEFAULT_QUALITY_PRESET = QualityPreset.BALANCED
DEFAULT_GLOBAL_ARGUMENTS = "-y -hide_banner"
DEFAULT_HARDWARE_DEVICE = "vaapi=va:/dev/dri/renderD128"
DEFAULT_AUDIO_BITRATE = "128k"

_HARDWARE_PRESET_ARGS = {
    QualityPreset.ULTRAFAST: "-c:v av1_qsv -preset veryfast -look_ahead_depth 10",
    QualityPreset.FAST: "-c:v av1_qsv -preset faster -look_ahead_depth 20",
    QualityPreset.BALANCED: "-c:v av1_qsv -preset slow -look_ahead_depth 30",
    QualityPreset.QUALITY: "-c:v av1_qsv -preset slow -look_ahead_depth 40",
    QualityPreset.SLOW: "-c:v av1_qsv -preset slower -look_ahead_depth 60",
    QualityPreset.ULTRASLOW: "-c:v av1_qsv -preset veryslow -look_ahead_depth 120",
}

_SOFTWARE_PRESET_ARGS = {
    QualityPreset.ULTRAFAST: "-c:v libaom-av1 -crf 35 -b:v 0 -cpu-used 8 -row-mt 1",
    QualityPreset.FAST: "-c:v libaom-av1 -crf 30 -b:v 0 -cpu-used 6 -row-mt 1",
    QualityPreset.BALANCED: "-c:v libaom-av1 -crf 30 -b:v 0 -cpu-used 4 -row-mt 1",
    QualityPreset.QUALITY: "-c:v libaom-av1 -crf 28 -b:v 0 -cpu-used 2 -row-mt 1",
    QualityPreset.SLOW: "-c:v libaom-av1 -crf 26 -b:v 0 -cpu-used 1 -row-mt 1",
    QualityPreset.ULTRASLOW: "-c:v libaom-av1 -crf 24 -b:v 0 -cpu-used 0 -row-mt 1 -tiles 2x2",
}

_PRESET_DESCRIPTIONS = {
    QualityPreset.ULTRAFAST: "Maximum speed, lower quality (good for testing)",
    QualityPreset.FAST: "Fast encoding with good quality",
    QualityPreset.BALANCED: "Balanced speed and quality (recommended)",
    QualityPreset.QUALITY: "High quality, slower encoding",
    QualityPreset.SLOW: "Very high quality, slow encoding",
    QualityPreset.ULTRASLOW: "Maximum quality, extremely slow encoding",
}

_NAMED_RESOLUTIONS = {
    "480p": "854:480",
    "720p": "1280:720",
    "1080p": "1920:1080",
    "4k": "3840:2160",
    "2160p": "3840:2160",
}

_AUDIO_BITRATES = {
    "low": "64k",
    "high": "256k",
}


def is_valid_quality_preset(preset: Any) -> bool:
    """Check whether a value names a known quality preset."""
    return preset in QualityPreset._value2member_map_


def resolve_quality_preset(preset: Any) -> QualityPreset:
    """Resolve a preset name, falling back to the default for anything unknown."""
    if isinstance(preset, QualityPreset):
        return preset
    if is_valid_quality_preset(preset):
        return QualityPreset(preset)
    return DEFAULT_QUALITY_PRESET


def preset_description(preset: Any) -> str:
    """Human-readable description of a preset."""
    if not is_valid_quality_preset(preset):
        return "Unknown preset"
    return _PRESET_DESCRIPTIONS[QualityPreset(preset)]


def preset_args(preset: Any, use_hardware_acceleration: bool) -> str:
    """Video codec arguments for a preset; unknown presets map to balanced."""
    table = _HARDWARE_PRESET_ARGS if use_hardware_acceleration else _SOFTWARE_PRESET_ARGS
    return table[resolve_quality_preset(preset)]


def scale_filter(resolution: str) -> str:
    """Scale target for a named resolution, or the value itself."""
    return _NAMED_RESOLUTIONS.get(resolution.lower(), resolution)


def audio_bitrate(audio_quality: str) -> str:
    return _AUDIO_BITRATES.get((audio_quality or "").lower(), DEFAULT_AUDIO_BITRATE)


class SimpleOptions(BaseModel):
    """User-friendly option set translated into FFmpeg arguments."""
    model_config = ConfigDict(extra="ignore")

    quality_preset: str = DEFAULT_QUALITY_PRESET.value
    resolution: str = ""
    keep_original_resolution: bool = False
    use_hardware_acceleration: bool = False
    trim_from: str = ""
    trim_duration: str = ""
    audio_quality: str = "medium"

    @field_validator(
        "quality_preset", "resolution", "trim_from", "trim_duration", "audio_quality",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("keep_original_resolution", "use_hardware_acceleration", mode="before")
    @classmethod
    def null_as_false(cls, value: Any) -> Any:
        return False if value is None else value


def derive_arguments(options: SimpleOptions) -> Tuple[str, str, str]:
    """Translate simple options into (global, input, output) argument strings."""
    input_args: List[str] = []
    if options.trim_from:
        input_args.extend(["-ss", options.trim_from])
        if options.trim_duration:
            input_args.extend(["-t", options.trim_duration])

    output_args = [preset_args(options.quality_preset, options.use_hardware_acceleration)]
    resolution = options.resolution.strip()
    if resolution and resolution.lower() != "original" and not options.keep_original_resolution:
        output_args.append(f"-vf scale={scale_filter(resolution)}")
    output_args.append(f"-c:a libopus -b:a {audio_bitrate(options.audio_quality)}")

    return DEFAULT_GLOBAL_ARGUMENTS, " ".join(input_args), " ".join(output_args)


class Job(BaseModel):
    """A transcoding job as submitted, queued and executed."""
    model_config = ConfigDict(extra="ignore")

    input_file_path: str = ""
    output_file_path: str = ""
    input_container_type: str = ""
    output_container_type: str = ""
    dry_run: str = ""
    hardware_device: str = ""
    simple_options: Optional[SimpleOptions] = None

    # Advanced mode
    global_arguments: str = ""
    input_arguments: str = ""
    output_arguments: str = ""

    @field_validator(
        "input_file_path", "output_file_path", "input_container_type",
        "output_container_type", "hardware_device", "global_arguments",
        "input_arguments", "output_arguments",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("dry_run", mode="before")
    @classmethod
    def coerce_dry_run(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return value

    @model_validator(mode="after")
    def derive_from_simple_options(self) -> "Job":
        # Runs on every decode; once derived the job is in advanced mode,
        # so re-decoding the serialized job leaves the arguments untouched.
        if self.simple_options is not None and not self.is_advanced_mode():
            (
                self.global_arguments,
                self.input_arguments,
                self.output_arguments,
            ) = derive_arguments(self.simple_options)
        return self

    def is_advanced_mode(self) -> bool:
        return bool(self.global_arguments or self.input_arguments or self.output_arguments)

    def is_dry_run(self) -> bool:
        return self.dry_run.lower() == "true"

    def uses_hardware_acceleration(self) -> bool:
        return self.simple_options is not None and self.simple_options.use_hardware_acceleration

    def build_command(self) -> List[str]:
        """
        Assemble the FFmpeg argument vector (without the binary).

        Order: hardware device init, global arguments, input arguments,
        ``-i <input>``, output arguments, output path.
        """
        args: List[str] = []

        if self.hardware_device:
            args.extend(["-init_hw_device", self.hardware_device])
        elif self.uses_hardware_acceleration():
            args.extend(["-init_hw_device", DEFAULT_HARDWARE_DEVICE])

        args.extend((self.global_arguments or DEFAULT_GLOBAL_ARGUMENTS).split())
        args.extend(self.input_arguments.split())
        args.extend(["-i", self.input_file_path])

        if self.output_arguments:
            args.extend(self.output_arguments.split())
        elif self.simple_options is not None:
            _, _, output_args = derive_arguments(self.simple_options)
            args.extend(output_args.split())

        args.append(self.output_file_path)
        return args

    def log_fields(self) -> Dict[str, Any]:
        """Structured log fields describing the job."""
        fields: Dict[str, Any] = {
            "input_file_path": self.input_file_path,
            "output_file_path": self.output_file_path,
            "input_container_type": self.input_container_type,
            "output_container_type": self.output_container_type,
            "dry_run": self.is_dry_run(),
            "hardware_device": self.hardware_device,
        }
        if self.simple_options is not None:
            options = self.simple_options
            fields.update(
                quality_preset=resolve_quality_preset(options.quality_preset).value,
                hardware_acceleration=options.use_hardware_acceleration,
                audio_quality=options.audio_quality,
                resolution=options.resolution,
                keep_original_resolution=options.keep_original_resolution,
            )
        else:
            fields.update(
                has_global_args=bool(self.global_arguments),
                has_input_args=bool(self.input_arguments),
                has_output_args=bool(self.output_arguments),
            )
        return fields


class JobResult(BaseModel):
    """Outcome of one job execution, published to the result queue."""
    job: Job
    output: str = ""
    error: Optional[str] = None


class PresetInfo(BaseModel):
    name: QualityPreset
    description: str
    hardware_arguments: str
    software_arguments: str


def validate_job(job: Job) -> None:
    """Raise MissingFieldError when a required path is empty."""
    if not job.input_file_path:
        raise MissingFieldError("input_file_path")
    if not job.output_file_path:
        raise MissingFieldError("output_file_path")


def list_presets() -> List[PresetInfo]:
    return [
        PresetInfo(
            name=preset,
            description=_PRESET_DESCRIPTIONS[preset],
            hardware_arguments=_HARDWARE_PRESET_ARGS[preset],
            software_arguments=_SOFTWARE_PRESET_ARGS[preset],
        )
        for preset in QualityPreset
    ]
