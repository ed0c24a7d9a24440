"""
Integration tests for hmm-decoder.

Tests that the file parsers, the model and the three algorithms work together.
"""

import math

import pytest

from hmm_decoder.hmm.model import HiddenMarkovModel
from hmm_decoder.infer import (
    BackwardEngine,
    ForwardEngine,
    SequenceEvaluator,
    ViterbiDecoder,
    run_batch
)
from hmm_decoder.io.observations import parse_observation_file


CASINO_MODEL_TEXT = """\
2 6 300
Fair Loaded
1 2 3 4 5 6
transitions
0.95 0.05
0.10 0.90
emissions
0.1666666667 0.1666666667 0.1666666667 0.1666666667 0.1666666667 0.1666666665
0.1 0.1 0.1 0.1 0.1 0.5
initial
0.5 0.5
"""


@pytest.fixture
def casino_model(tmp_path):
    path = tmp_path / "casino.hmm"
    path.write_text(CASINO_MODEL_TEXT)
    return HiddenMarkovModel.from_file(path)


@pytest.fixture
def casino_rolls(tmp_path):
    rolls = ["1", "2", "3", "4", "5", "6"] * 25 + ["6"] * 150

    path = tmp_path / "rolls.obs"
    path.write_text("2\nshort game\n6 6 6 1 2\nlong game\n" + " ".join(rolls) + "\n")
    return path


@pytest.mark.integration
class TestCompletePipeline:
    """Model file and observation file through every algorithm."""

    def test_weather_files(self, model_file, observation_file):
        model = HiddenMarkovModel.from_file(model_file)
        sequences = parse_observation_file(observation_file)

        forward = run_batch(ForwardEngine(model).probability, sequences)
        backward = run_batch(BackwardEngine(model).probability, sequences)
        paths = run_batch(ViterbiDecoder(model).decode, sequences)

        assert [o.value for o in forward] == pytest.approx([0.30, 0.189, 0.14073])
        for f, b in zip(forward, backward):
            assert f.value == pytest.approx(b.value)
        for f, p in zip(forward, paths):
            assert p.value.probability <= f.value + 1e-12

    def test_viterbi_path_never_beats_total(self, casino_model, casino_rolls):
        sequences = parse_observation_file(casino_rolls)
        forward = ForwardEngine(casino_model, log_space=True)
        decoder = ViterbiDecoder(casino_model, log_space=True)
        evaluator = SequenceEvaluator(casino_model, log_space=True)

        for observations in sequences:
            path = decoder.decode(observations)
            total = forward.log_probability(observations)

            assert len(path) == len(observations)
            assert path.log_probability <= total + 1e-9
            assert evaluator.evaluate(observations, path.states) == pytest.approx(path.log_probability)

    def test_long_game_finds_loaded_die(self, casino_model, casino_rolls):
        long_game = parse_observation_file(casino_rolls)[1]
        path = ViterbiDecoder(casino_model, log_space=True).decode(long_game)

        assert casino_model.nominal_length == 300
        assert set(path.states[:100]) == {"Fair"}
        assert set(path.states[-100:]) == {"Loaded"}

    def test_long_game_forward_matches_backward(self, casino_model, casino_rolls):
        long_game = parse_observation_file(casino_rolls)[1]

        log_total = ForwardEngine(casino_model, log_space=True).log_probability(long_game)
        log_backward = BackwardEngine(casino_model, log_space=True).log_probability(long_game)

        assert math.isfinite(log_total)
        assert log_total == pytest.approx(log_backward)
        assert log_total < math.log(0.5) * 150

