"""
Tests for the job model and FFmpeg argument derivation
"""
import json

import pytest

from api.models.job import (
    DEFAULT_GLOBAL_ARGUMENTS,
    DEFAULT_HARDWARE_DEVICE,
    Job,
    JobResult,
    QualityPreset,
    SimpleOptions,
    derive_arguments,
    is_valid_quality_preset,
    list_presets,
    preset_args,
    preset_description,
    resolve_quality_preset,
    validate_job,
)
from api.utils.error_handlers import MissingFieldError


class TestPresets:
    """Test preset lookup helpers."""

    @pytest.mark.unit
    def test_known_presets_are_valid(self):
        for preset in QualityPreset:
            assert is_valid_quality_preset(preset.value)
        assert not is_valid_quality_preset("warp-speed")
        assert not is_valid_quality_preset("")

    @pytest.mark.unit
    def test_hardware_balanced_args(self):
        assert preset_args("balanced", True) == "-c:v av1_qsv -preset slow -look_ahead_depth 30"

    @pytest.mark.unit
    def test_software_args_use_libaom(self):
        for preset in QualityPreset:
            assert preset_args(preset.value, False).startswith("-c:v libaom-av1")

    @pytest.mark.unit
    @pytest.mark.parametrize("hardware", [True, False])
    def test_unknown_preset_maps_to_balanced(self, hardware):
        assert preset_args("does-not-exist", hardware) == preset_args("balanced", hardware)
        assert resolve_quality_preset("does-not-exist") is QualityPreset.BALANCED

    @pytest.mark.unit
    def test_descriptions(self):
        assert preset_description("balanced") == "Balanced speed and quality (recommended)"
        assert preset_description("nope") == "Unknown preset"

    @pytest.mark.unit
    def test_list_presets_covers_every_preset(self):
        presets = list_presets()
        assert [p.name for p in presets] == list(QualityPreset)
        assert all(p.hardware_arguments and p.software_arguments for p in presets)


class TestDerivation:
    """Test translation of simple options into FFmpeg arguments."""

    @pytest.mark.unit
    def test_balanced_hardware(self):
        options = SimpleOptions(quality_preset="balanced", use_hardware_acceleration=True)
        global_args, input_args, output_args = derive_arguments(options)

        assert global_args == DEFAULT_GLOBAL_ARGUMENTS
        assert input_args == ""
        assert output_args == "-c:v av1_qsv -preset slow -look_ahead_depth 30 -c:a libopus -b:a 128k"

    @pytest.mark.unit
    def test_trim_fast_software(self):
        options = SimpleOptions(quality_preset="fast", trim_from="00:01:30", trim_duration="00:05:00")
        _, input_args, output_args = derive_arguments(options)

        assert input_args == "-ss 00:01:30 -t 00:05:00"
        assert output_args.startswith("-c:v libaom-av1 -crf 30")

    @pytest.mark.unit
    def test_duration_without_start_is_ignored(self):
        options = SimpleOptions(trim_duration="00:05:00")
        _, input_args, _ = derive_arguments(options)
        assert input_args == ""

    @pytest.mark.unit
    def test_quality_1080p_high_audio(self):
        options = SimpleOptions(quality_preset="quality", resolution="1080p", audio_quality="high")
        _, _, output_args = derive_arguments(options)

        assert "-vf scale=1920:1080" in output_args
        assert output_args.endswith("-c:a libopus -b:a 256k")

    @pytest.mark.unit
    @pytest.mark.parametrize("resolution,expected", [
        ("480p", "854:480"),
        ("720P", "1280:720"),
        ("4k", "3840:2160"),
        ("640:360", "640:360"),
    ])
    def test_resolution_scaling(self, resolution, expected):
        _, _, output_args = derive_arguments(SimpleOptions(resolution=resolution))
        assert f"-vf scale={expected}" in output_args

    @pytest.mark.unit
    def test_keep_original_resolution_skips_scaling(self):
        options = SimpleOptions(resolution="720p", keep_original_resolution=True)
        _, _, output_args = derive_arguments(options)
        assert "-vf" not in output_args

        _, _, output_args = derive_arguments(SimpleOptions(resolution="original"))
        assert "-vf" not in output_args

    @pytest.mark.unit
    def test_low_audio(self):
        _, _, output_args = derive_arguments(SimpleOptions(audio_quality="low"))
        assert output_args.endswith("-b:a 64k")

    @pytest.mark.unit
    def test_null_options_decode_as_defaults(self):
        options = SimpleOptions.model_validate({"resolution": None, "use_hardware_acceleration": None})
        assert options.resolution == ""
        assert options.use_hardware_acceleration is False


class TestJob:
    """Test job decoding and command construction."""

    @pytest.mark.unit
    def test_decode_derives_arguments(self, simple_job_payload):
        job = Job.model_validate_json(json.dumps(simple_job_payload))

        assert job.is_advanced_mode()
        assert job.global_arguments == DEFAULT_GLOBAL_ARGUMENTS
        assert "-preset slow -look_ahead_depth 30" in job.output_arguments
        assert "-b:a 128k" in job.output_arguments

    @pytest.mark.unit
    def test_advanced_arguments_are_not_overwritten(self, advanced_job_payload):
        payload = dict(advanced_job_payload, simple_options={"quality_preset": "fast"})
        job = Job.model_validate(payload)

        assert job.global_arguments == "-y -hide_banner -loglevel error"
        assert job.output_arguments == "-c:v libvpx-vp9 -b:v 2M"

    @pytest.mark.unit
    def test_redecoding_is_stable(self, simple_job_payload):
        first = Job.model_validate_json(json.dumps(simple_job_payload))
        second = Job.model_validate_json(first.model_dump_json())

        assert second == first
        assert second.model_dump_json() == first.model_dump_json()

    @pytest.mark.unit
    def test_unknown_fields_are_ignored(self):
        job = Job.model_validate({"input_file_path": "a", "output_file_path": "b", "priority": "high"})
        assert not hasattr(job, "priority")

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("TrUe", True),
        ("false", False),
        ("", False),
        ("yes", False),
        (True, True),
        (None, False),
    ])
    def test_dry_run(self, value, expected):
        assert Job.model_validate({"dry_run": value}).is_dry_run() is expected

    @pytest.mark.unit
    def test_is_advanced_mode(self):
        assert not Job().is_advanced_mode()
        assert Job(input_arguments="-ss 5").is_advanced_mode()

    @pytest.mark.unit
    def test_build_command_order(self, advanced_job_payload):
        job = Job.model_validate(advanced_job_payload)

        assert job.build_command() == [
            "-y", "-hide_banner", "-loglevel", "error",
            "-ss", "10",
            "-i", "/media/in.mp4",
            "-c:v", "libvpx-vp9", "-b:v", "2M",
            "/media/out.webm",
        ]

    @pytest.mark.unit
    def test_build_command_without_options(self):
        job = Job(input_file_path="in", output_file_path="out")
        assert job.build_command() == ["-y", "-hide_banner", "-i", "in", "out"]

    @pytest.mark.unit
    def test_build_command_default_hardware_device(self, simple_job_payload):
        command = Job.model_validate(simple_job_payload).build_command()

        assert command[:2] == ["-init_hw_device", DEFAULT_HARDWARE_DEVICE]
        input_index = command.index("-i")
        assert command[input_index + 1] == "/media/in.mp4"
        assert command[input_index + 2:input_index + 4] == ["-c:v", "av1_qsv"]
        assert command[-1] == "/media/out.mkv"

    @pytest.mark.unit
    def test_build_command_explicit_hardware_device_wins(self, simple_job_payload):
        payload = dict(simple_job_payload, hardware_device="cuda=gpu:0")
        command = Job.model_validate(payload).build_command()

        assert command[:2] == ["-init_hw_device", "cuda=gpu:0"]
        assert DEFAULT_HARDWARE_DEVICE not in command

    @pytest.mark.unit
    def test_log_fields(self, simple_job_payload):
        fields = Job.model_validate(simple_job_payload).log_fields()

        assert fields["quality_preset"] == "balanced"
        assert fields["hardware_acceleration"] is True
        assert fields["dry_run"] is False

    @pytest.mark.unit
    def test_validate_job_requires_paths(self):
        with pytest.raises(MissingFieldError) as exc_info:
            validate_job(Job(input_file_path="in"))
        assert exc_info.value.field == "output_file_path"
        assert exc_info.value.status_code == 400

        with pytest.raises(MissingFieldError):
            validate_job(Job(output_file_path="out"))

        validate_job(Job(input_file_path="in", output_file_path="out"))

    @pytest.mark.unit
    def test_result_serialization(self, advanced_job_payload):
        result = JobResult(job=Job.model_validate(advanced_job_payload), output="done")
        data = json.loads(result.model_dump_json())

        assert data["output"] == "done"
        assert data["error"] is None
        assert data["job"]["output_file_path"] == "/media/out.webm"
