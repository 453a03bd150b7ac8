# pylint: disable=missing-module-docstring,missing-function-docstring

import numpy as np
import pytest

from audio.segmenter import AudioSegment, AudioSegmenter

from fakes import pcm


def make_segmenter(cap: int = 10) -> AudioSegmenter:
    return AudioSegmenter(max_segment_samples=cap, sample_rate_hz=16_000)


def test_below_cap_buffers_without_cutting():
    seg = make_segmenter(cap=10)

    assert seg.on_samples(pcm(range(4))) == []
    assert seg.on_samples(pcm(range(4, 9))) == []

    assert seg.buffered_samples == 9
    assert not seg.is_empty


def test_exactly_cap_cuts_one_segment_and_leaves_no_residue():
    seg = make_segmenter(cap=10)

    segments = seg.on_samples(pcm(range(10)))

    assert len(segments) == 1
    assert len(segments[0]) == 10
    assert segments[0].samples.tolist() == list(range(10))
    assert seg.is_empty


def test_size_cut_takes_front_and_keeps_remainder():
    seg = make_segmenter(cap=10)

    seg.on_samples(pcm(range(6)))
    segments = seg.on_samples(pcm(range(6, 13)))

    assert [s.samples.tolist() for s in segments] == [list(range(10))]
    assert seg.buffered_samples == 3

    tail = seg.on_timeout()
    assert tail is not None
    assert tail.samples.tolist() == [10, 11, 12]


def test_large_chunk_cuts_multiple_segments():
    seg = make_segmenter(cap=4)

    segments = seg.on_samples(pcm(range(11)))

    assert [s.samples.tolist() for s in segments] == [[0, 1, 2, 3], [4, 5, 6, 7]]
    assert seg.buffered_samples == 3


def test_timeout_cuts_whole_buffer():
    seg = make_segmenter(cap=100)
    seg.on_samples(pcm([1, 2]))
    seg.on_samples(pcm([3]))

    segment = seg.on_timeout()

    assert segment is not None
    assert segment.samples.tolist() == [1, 2, 3]
    assert seg.is_empty


def test_timeout_on_empty_buffer_emits_nothing():
    seg = make_segmenter()
    assert seg.on_timeout() is None


def test_empty_chunk_is_a_no_op():
    seg = make_segmenter()
    assert seg.on_samples(pcm([])) == []
    assert seg.is_empty


def test_clear_reports_dropped_count():
    seg = make_segmenter(cap=100)
    seg.on_samples(pcm(range(7)))

    assert seg.clear() == 7
    assert seg.is_empty
    assert seg.clear() == 0


def test_concatenation_of_segments_and_residue_preserves_order():
    rng = np.random.default_rng(1234)
    seg = make_segmenter(cap=37)

    sent: list[int] = []
    emitted: list[int] = []
    for size in rng.integers(0, 50, size=40):
        chunk = rng.integers(-32768, 32767, size=int(size), dtype=np.int16)
        sent.extend(chunk.tolist())
        for segment in seg.on_samples(chunk):
            assert len(segment) == 37
            emitted.extend(segment.samples.tolist())

    tail = seg.on_timeout()
    if tail is not None:
        emitted.extend(tail.samples.tolist())

    assert emitted == sent


def test_segment_is_immutable_copy():
    source = pcm([1, 2, 3])
    segment = AudioSegment(samples=source, sample_rate_hz=16_000)

    source[0] = 99
    assert segment.samples.tolist() == [1, 2, 3]

    with pytest.raises(ValueError):
        segment.samples[0] = 5


def test_segment_rejects_empty_samples():
    with pytest.raises(ValueError):
        AudioSegment(samples=pcm([]), sample_rate_hz=16_000)


def test_segment_duration():
    segment = AudioSegment(samples=pcm([0] * 8000), sample_rate_hz=16_000)
    assert segment.duration_s == pytest.approx(0.5)


@pytest.mark.parametrize("cap,rate", [(0, 16_000), (10, 0)])
def test_segmenter_rejects_bad_configuration(cap: int, rate: int):
    with pytest.raises(ValueError):
        AudioSegmenter(max_segment_samples=cap, sample_rate_hz=rate)
