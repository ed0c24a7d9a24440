"""
Tests for batch evaluation policies.
"""

import logging

import pytest

from hmm_decoder.config import set_config
from hmm_decoder.exceptions import UnknownSymbolError
from hmm_decoder.infer import ForwardEngine, ViterbiDecoder
from hmm_decoder.infer.batch import BatchPolicy, SequenceOutcome, resolve_policy, run_batch


SEQUENCES = [["Walk"], ["Walk", "Swim"], ["Walk", "Shop"]]


class TestResolvePolicy:
    """Policy names and defaults."""

    def test_default_is_abort(self):
        assert resolve_policy(None) is BatchPolicy.ABORT

    def test_default_from_config(self):
        set_config('inference', 'batch_policy', 'collect')
        assert resolve_policy(None) is BatchPolicy.COLLECT

    def test_names(self):
        assert resolve_policy("abort") is BatchPolicy.ABORT
        assert resolve_policy(BatchPolicy.COLLECT) is BatchPolicy.COLLECT

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown batch policy"):
            resolve_policy("retry")


class TestRunBatch:
    """Abort and collect behaviour."""

    def test_all_good(self, weather_model):
        outcomes = run_batch(ForwardEngine(weather_model).probability, [["Walk"], ["Walk", "Shop"]])

        assert [o.index for o in outcomes] == [0, 1]
        assert all(o.ok for o in outcomes)
        assert outcomes[1].value == pytest.approx(0.189)

    def test_abort_propagates_first_error(self, weather_model):
        with pytest.raises(UnknownSymbolError):
            run_batch(ForwardEngine(weather_model).probability, SEQUENCES, policy="abort")

    def test_collect_reports_each_sequence(self, weather_model, caplog):
        with caplog.at_level(logging.WARNING, logger="hmm_decoder"):
            logging.getLogger("hmm_decoder").propagate = True
            try:
                outcomes = run_batch(ViterbiDecoder(weather_model).decode, SEQUENCES, policy="collect")
            finally:
                logging.getLogger("hmm_decoder").propagate = False

        assert len(outcomes) == 3
        assert outcomes[0].ok and outcomes[2].ok
        assert not outcomes[1].ok
        assert outcomes[1].value is None
        assert "No such output: Swim" in outcomes[1].error
        assert outcomes[2].value.states == ("Sunny", "Rainy")
        assert "Sequence 2 failed" in caplog.text

    def test_collect_catches_empty_sequences(self, weather_model):
        outcomes = run_batch(ForwardEngine(weather_model).probability, [[], ["Walk"]], policy=BatchPolicy.COLLECT)

        assert "at least one symbol" in outcomes[0].error
        assert outcomes[1].value == pytest.approx(0.30)

    def test_programming_errors_always_propagate(self):
        def broken(observations):
            raise TypeError("bug")

        with pytest.raises(TypeError):
            run_batch(broken, [["Walk"]], policy="collect")

    def test_outcome_defaults(self):
        outcome = SequenceOutcome(0, ["Walk"], value=0.3)
        assert outcome.ok
        assert outcome.error is None
