import numpy as np
import pytest
import soundfile as sf

from Core.file_source import FileSource, load_mono, resample_if_needed

from conftest import sine, SR


@pytest.fixture
def tone_path(tmp_path):
    path = tmp_path / "tone.wav"
    sf.write(str(path), sine(220.0, n=10000, amplitude=0.5), SR)
    return str(path)


class TestLoadMono:

    def test_stereo_is_mixed_down(self, tmp_path):
        path = tmp_path / "stereo.wav"
        left = np.full(512, 0.5, dtype=np.float32)
        right = np.full(512, -0.25, dtype=np.float32)
        sf.write(str(path), np.stack([left, right], axis=1), SR)
        x, fs = load_mono(str(path))
        assert fs == SR
        assert x.shape == (512,)
        np.testing.assert_allclose(x, 0.125, atol=1e-3)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_mono(str(tmp_path / "missing.wav"))

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("not audio")
        with pytest.raises(ValueError):
            load_mono(str(path))


class TestResample:

    def test_same_rate_is_untouched(self):
        x = np.ones(100, dtype=np.float32)
        assert resample_if_needed(x, SR, SR) is x

    def test_halves_length(self):
        x = np.zeros(44100, dtype=np.float32)
        assert len(resample_if_needed(x, 44100, 22050)) == 22050


class TestFileSource:

    def test_frames_and_hop(self, tone_path):
        src = FileSource(tone_path, frame_size=4096, hop_size=1024)
        src.open()
        assert src.sample_rate == SR
        first = src.read_frame()
        assert first.shape == (4096,)
        assert first.dtype == np.float32
        assert src.position == 1024
        assert src.time == pytest.approx(1024 / SR)

    def test_last_frame_is_padded(self, tone_path):
        src = FileSource(tone_path, frame_size=4096, hop_size=4096)
        src.open()
        frames = []
        while not src.exhausted:
            frames.append(src.read_frame())
        assert len(frames) == 3
        assert np.all(frames[-1][10000 - 8192:] == 0)
        with pytest.raises(EOFError):
            src.read_frame()

    def test_read_before_open(self, tone_path):
        with pytest.raises(RuntimeError):
            FileSource(tone_path).read_frame()

    def test_target_rate(self, tone_path):
        src = FileSource(tone_path, target_rate=22050)
        src.open()
        assert src.sample_rate == 22050
        assert len(src.samples) == 5000

    def test_close(self, tone_path):
        src = FileSource(tone_path)
        src.open()
        src.close()
        src.close()
        assert src.exhausted
