"""
Tests for audio.py - sample synthesis and the silent backends.
"""

import numpy as np

from audio import BeepAudio, NullAudio, make_beep_samples


class TestBeepSamples:
    """make_beep_samples"""

    def test_length_and_dtype(self):
        samples = make_beep_samples(440, 0.1, sample_rate=22050)
        assert samples.dtype == np.int16
        assert len(samples) == 2205

    def test_gain_decays(self):
        samples = make_beep_samples(440, 0.2, volume=1.0).astype(float)
        head = np.abs(samples[:1000]).max()
        tail = np.abs(samples[-1000:]).max()
        assert head > tail
        assert head <= 0.3 * 32767 + 1

    def test_zero_volume_is_silent(self):
        assert not make_beep_samples(440, 0.1, volume=0).any()


class TestBackends:
    """Playback gates."""

    def test_null_audio_accepts_any_event(self):
        audio = NullAudio()
        audio.set_enabled(True)
        audio.play("anything")
        assert not audio.enabled

    def test_beep_audio_from_settings(self):
        audio = BeepAudio.from_settings({"sound_enabled": False, "sfx_volume": 0.2})
        assert not audio.enabled
        assert audio.sfx_volume == 0.2

    def test_play_before_init_is_a_noop(self):
        audio = BeepAudio()
        audio.play("food")
        audio.set_enabled(False)
        audio.play("food")
        assert not audio.enabled
