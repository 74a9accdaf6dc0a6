"""
Tests for vocal_enhancer/core.py — the end-to-end enhancement engine.

Test organisation:
    TestComputeShiftRatio — ratio policy (bounds, dead zone, cap, strength, smoothing)
    TestEnhancerConfig    — construction-time validation of tunables
    TestConstruction      — engine validation errors
    TestEnhance           — PCM in / PCM out scenarios
    TestCorrection        — output pitch moves toward the target note
    TestFloatPcm          — float32 PCM through the engine
"""

from __future__ import annotations

import numpy as np
import pytest

from vocal_enhancer import EnhancerConfig, EnhancerConstructionError, VocalEnhancer, enhance
from vocal_enhancer.core import compute_shift_ratio
from vocal_enhancer.data.pcm import decode, encode
from vocal_enhancer.dsp.dynamics import process_dynamics, rms

SR = 44100


class TestComputeShiftRatio:
    def test_plain_ratio(self) -> None:
        assert compute_shift_ratio(436.0, 440.0) == pytest.approx(440.0 / 436.0)

    @pytest.mark.parametrize("detected", [0.0, -10.0, float("nan"), float("inf")])
    def test_unusable_detection_passes_through(self, detected: float) -> None:
        assert compute_shift_ratio(detected, 440.0) == 1.0

    @pytest.mark.parametrize("detected, target", [(100.0, 440.0), (1000.0, 440.0)])
    def test_out_of_range_is_spurious(self, detected: float, target: float) -> None:
        assert compute_shift_ratio(detected, target) == 1.0

    def test_ratio_bounds_inclusive(self) -> None:
        assert compute_shift_ratio(220.0, 440.0) == 2.0
        assert compute_shift_ratio(880.0, 440.0) == 0.5

    def test_dead_zone(self) -> None:
        # 436 -> 440 Hz is about 15.8 cents
        assert compute_shift_ratio(436.0, 440.0, EnhancerConfig(dead_zone_cents=20.0)) == 1.0
        assert compute_shift_ratio(436.0, 440.0, EnhancerConfig(dead_zone_cents=10.0)) > 1.0

    def test_correction_cap(self) -> None:
        config = EnhancerConfig(max_correction_cents=5.0)
        assert compute_shift_ratio(436.0, 440.0, config) == pytest.approx(2.0 ** (5.0 / 1200.0))
        assert compute_shift_ratio(444.0, 440.0, config) == pytest.approx(2.0 ** (-5.0 / 1200.0))

    def test_strength(self) -> None:
        half = compute_shift_ratio(436.0, 440.0, EnhancerConfig(strength=0.5))
        assert half == pytest.approx((440.0 / 436.0) ** 0.5)
        assert compute_shift_ratio(436.0, 440.0, EnhancerConfig(strength=0.0)) == 1.0

    def test_smoothing(self) -> None:
        smoothed = compute_shift_ratio(436.0, 440.0, EnhancerConfig(smoothing=0.25))
        assert smoothed == pytest.approx(1.0 + 0.25 * (440.0 / 436.0 - 1.0))
        assert compute_shift_ratio(440.0, 436.0, EnhancerConfig(smoothing=0.25)) < 1.0


class TestEnhancerConfig:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"analysis_ms": 0.0},
            {"min_ratio": 1.5},
            {"max_ratio": 0.9},
            {"dead_zone_cents": -1.0},
            {"max_correction_cents": 0.0},
            {"strength": 1.5},
            {"shifter": "granular"},
            {"hop_size": 0},
            {"window_size": 256, "hop_size": 512},
            {"compressor_ratio": 0.5},
            {"exciter_mix": 2.0},
            {"gain": -1.0},
            {"echo_delays_ms": (0.0, 125.0)},
            {"smoothing": 1.5},
            {"bypass_eps": -0.1},
            {"limiter_ceiling": 1.0},
        ],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(EnhancerConstructionError):
            EnhancerConfig(**kwargs)

    def test_frozen(self) -> None:
        config = EnhancerConfig()
        with pytest.raises(AttributeError):
            config.gain = 2.0  # type: ignore[misc]


class TestConstruction:
    @pytest.mark.parametrize(
        "args",
        [(0,), (-44100,), ("fast",), (SR, 5), (SR, 2, 0)],
    )
    def test_invalid_format(self, args: tuple) -> None:
        with pytest.raises(EnhancerConstructionError):
            VocalEnhancer(*args)

    def test_float_pcm_needs_four_bytes(self) -> None:
        with pytest.raises(EnhancerConstructionError):
            VocalEnhancer(SR, 2, is_float=True)

    def test_analysis_size_from_rate(self) -> None:
        assert VocalEnhancer(SR).analyzer.n_fft == 2048
        assert VocalEnhancer(8000).analyzer.n_fft == 512

    def test_initial_state(self) -> None:
        engine = VocalEnhancer(SR)
        assert engine.progress == 0
        assert engine.banner == "Begin Vocal Enhancement"
        assert engine.last_analysis is None
        assert engine.frame_bytes == 2


class TestEnhance:
    def test_silence_stays_silent(self) -> None:
        pcm = bytes(2 * SR)
        out = VocalEnhancer(SR).enhance(pcm)
        assert out == pcm

    def test_off_pitch_a4_is_pulled_up(self, sine) -> None:
        engine = VocalEnhancer(SR)
        pcm = encode(sine(436.0, 0.5))
        out = engine.enhance(pcm)

        assert len(out) == len(pcm)
        analysis = engine.last_analysis
        assert not analysis.is_silent
        assert abs(analysis.detected - 436.0) <= engine.analyzer.bin_width
        assert analysis.note == "A4"
        assert analysis.target == pytest.approx(440.0)
        assert 1.0 < analysis.ratio < 1.05
        assert engine.progress == 100
        assert engine.banner == "Vocal Enhancement complete!"

    def test_trailing_partial_frame_dropped(self, sine) -> None:
        pcm = encode(sine(440.0, 1000 / SR)) + b"\x01"
        assert len(pcm) == 2001
        assert len(VocalEnhancer(SR).enhance(pcm)) == 2000

    def test_empty(self) -> None:
        engine = VocalEnhancer(SR)
        assert engine.enhance(b"") == b""
        assert engine.progress == 100

    def test_output_bounded_with_gain(self, rng: np.random.Generator) -> None:
        engine = VocalEnhancer(SR, config=EnhancerConfig(gain=4.0))
        y = engine.process(rng.uniform(-1.0, 1.0, 8192))
        assert np.max(np.abs(y)) <= 1.0

    def test_phase_vocoder_shifter(self, sine) -> None:
        pcm = encode(sine(436.0, 0.5))
        out = VocalEnhancer(SR, config=EnhancerConfig(shifter="phase_vocoder")).enhance(pcm)
        assert len(out) == len(pcm)
        assert np.all(np.isfinite(decode(out)))

    def test_stereo_round_trip(self, sine) -> None:
        mono = sine(436.0, 0.25)
        stereo = encode(mono, channels=2)
        out = VocalEnhancer(SR, channels=2).enhance(stereo)
        assert len(out) == len(stereo)
        frames = np.frombuffer(out, dtype="<i2").reshape(-1, 2)
        np.testing.assert_array_equal(frames[:, 0], frames[:, 1])

    def test_module_level_enhance(self, sine) -> None:
        pcm = encode(sine(436.0, 0.25))
        assert enhance(pcm, SR) == VocalEnhancer(SR).enhance(pcm)

    def test_non_finite_resynthesis_falls_back_to_dry(
        self, sine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            "vocal_enhancer.core.shift_pitch",
            lambda samples, *args, **kwargs: np.full(len(samples), np.nan),
        )
        x = sine(436.0, 0.25)
        y = VocalEnhancer(SR).process(x)
        np.testing.assert_array_equal(y, process_dynamics(x, EnhancerConfig(), SR))


class TestCorrection:
    def test_flat_tone_is_raised_toward_target(self, sine, peak_frequency) -> None:
        x = sine(430.0, 0.5)
        engine = VocalEnhancer(SR)
        y = decode(engine.enhance(encode(x)))

        expected = 430.0 * engine.last_analysis.ratio
        assert engine.last_analysis.ratio > 1.0
        assert peak_frequency(y) == pytest.approx(expected, abs=2.0)
        assert abs(peak_frequency(y) - 440.0) < abs(peak_frequency(x) - 440.0)

    def test_sharp_tone_is_lowered_toward_target(self, sine, peak_frequency) -> None:
        x = sine(452.0, 0.5)
        engine = VocalEnhancer(SR)
        y = engine.process(x)
        assert engine.last_analysis.ratio < 1.0
        assert abs(peak_frequency(y) - 440.0) < abs(peak_frequency(x) - 440.0)

    def test_phase_vocoder_raises_too(self, sine, peak_frequency) -> None:
        x = sine(430.0, 1.0)
        engine = VocalEnhancer(SR, config=EnhancerConfig(shifter="phase_vocoder"))
        y = engine.process(x)
        assert peak_frequency(y) == pytest.approx(430.0 * engine.last_analysis.ratio, abs=3.0)

    def test_bypass_skips_resynthesis(self, sine, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args, **kwargs):
            pytest.fail("resynthesis should have been bypassed")

        monkeypatch.setattr("vocal_enhancer.core.shift_pitch", fail)
        config = EnhancerConfig(bypass_eps=0.05)
        x = sine(436.0, 0.25)
        y = VocalEnhancer(SR, config=config).process(x)
        np.testing.assert_array_equal(y, process_dynamics(x, config, SR))

    def test_makeup_gain_uses_dry_level(self, sine, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "vocal_enhancer.core.shift_pitch",
            lambda samples, *args, **kwargs: 0.5 * samples,
        )
        config = EnhancerConfig(makeup_gain=True, soft_limit=True)
        x = sine(436.0, 0.25)
        y = VocalEnhancer(SR, config=config).process(x)
        np.testing.assert_allclose(y, process_dynamics(0.5 * x, config, SR, reference_rms=rms(x)))
        assert np.max(np.abs(y)) <= config.limiter_ceiling


class TestFloatPcm:
    def test_enhance_float32(self, sine) -> None:
        pcm = encode(sine(436.0, 0.25), 4, is_float=True)
        out = enhance(pcm, SR, 4, is_float=True)
        assert len(out) == len(pcm)
        y = np.frombuffer(out, dtype="<f4")
        assert np.all(np.isfinite(y))
        assert np.max(np.abs(y)) <= 1.0
