"""
Unit tests for the HiddenMarkovModel implementation.

Tests cover construction, stochastic validation, name lookups and
immutability of the model tables.
"""

import math

import numpy as np
import pytest

from hmm_decoder.config import set_config
from hmm_decoder.exceptions import (
    HMMDecoderError,
    ModelValidationError,
    ParseError,
    UnknownStateError,
    UnknownSymbolError
)
from hmm_decoder.hmm.model import HiddenMarkovModel


def make_model(**overrides):
    params = dict(
        states=["Rainy", "Sunny"],
        outputs=["Walk", "Shop"],
        transitions=[[0.7, 0.3], [0.4, 0.6]],
        emissions=[[0.1, 0.9], [0.6, 0.4]],
        initial=[0.6, 0.4],
    )
    params.update(overrides)
    return HiddenMarkovModel(**params)


class TestModelConstruction:
    """Construction from arrays, text and files."""

    def test_counts(self, weather_model):
        assert weather_model.state_count() == 2
        assert weather_model.output_count() == 2
        assert weather_model.nominal_length == 2

    def test_alphabets_keep_file_order(self, weather_model):
        assert weather_model.states == ("Rainy", "Sunny")
        assert weather_model.outputs == ("Walk", "Shop")

    def test_tables(self, weather_model):
        np.testing.assert_array_equal(weather_model.A, [[0.7, 0.3], [0.4, 0.6]])
        np.testing.assert_array_equal(weather_model.B, [[0.1, 0.9], [0.6, 0.4]])
        np.testing.assert_array_equal(weather_model.pi, [0.6, 0.4])

    def test_from_file(self, model_file):
        model = HiddenMarkovModel.from_file(model_file)
        assert model.states == ("Rainy", "Sunny")

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            HiddenMarkovModel.from_file(tmp_path / "nope.hmm")

    def test_from_text_malformed(self):
        with pytest.raises(ParseError):
            HiddenMarkovModel.from_text("2 2 2\nRainy Sunny\n")

    def test_shape_mismatch(self):
        with pytest.raises(ModelValidationError, match="B shape"):
            make_model(emissions=[[0.1, 0.9]])

    @pytest.mark.parametrize("overrides, table", [
        ({"transitions": [[1.0], [0.5, 0.5]]}, "A"),
        ({"emissions": [[0.1, 0.9], [1.0]]}, "B"),
        ({"initial": [[0.6], 0.4]}, "pi"),
        ({"transitions": [["high", "low"], [0.4, 0.6]]}, "A"),
    ])
    def test_ragged_or_non_numeric_tables(self, overrides, table):
        with pytest.raises(ModelValidationError, match=f"^{table} is not a rectangular table"):
            make_model(**overrides)

    def test_duplicate_state(self):
        with pytest.raises(ModelValidationError, match="Duplicate state name"):
            make_model(states=["Rainy", "Rainy"])

    def test_empty_alphabet(self):
        with pytest.raises(ModelValidationError, match="Output alphabet is empty"):
            make_model(outputs=[], emissions=[[], []])

    def test_log_tables(self, weather_model):
        np.testing.assert_allclose(weather_model.log_A, np.log(weather_model.A))
        assert weather_model.log_pi[0] == pytest.approx(math.log(0.6))

    def test_log_of_zero_is_negative_infinity(self):
        model = make_model(transitions=[[1.0, 0.0], [0.0, 1.0]])
        assert model.log_A[0, 1] == -np.inf

    def test_repr(self, weather_model):
        assert repr(weather_model) == "HiddenMarkovModel(n_states=2, n_outputs=2)"


class TestStochasticValidation:
    """Every distribution in a model must sum to one."""

    def test_weather_model_is_valid(self, weather_model):
        assert weather_model.validate_stochastic_matrices() is True

    def test_rows_sum_to_one(self, random_model):
        tolerance = 1e-6

        assert abs(random_model.pi.sum() - 1.0) < tolerance
        np.testing.assert_allclose(random_model.A.sum(axis=1), 1.0, atol=tolerance)
        np.testing.assert_allclose(random_model.B.sum(axis=1), 1.0, atol=tolerance)

    def test_bad_transition_row(self):
        with pytest.raises(ModelValidationError, match="Transition matrix row for state Sunny sums to"):
            make_model(transitions=[[0.7, 0.3], [0.4, 0.5]])

    def test_bad_emission_row(self):
        with pytest.raises(ModelValidationError, match="Emission matrix row for state Rainy"):
            make_model(emissions=[[0.2, 0.9], [0.6, 0.4]])

    def test_bad_initial(self):
        with pytest.raises(ModelValidationError, match="Initial probabilities sum to"):
            make_model(initial=[0.5, 0.4])

    def test_negative_probability(self):
        with pytest.raises(ModelValidationError, match="Transition matrix contains negative values"):
            make_model(transitions=[[1.2, -0.2], [0.4, 0.6]])

    def test_non_finite_probability(self):
        with pytest.raises(ModelValidationError, match="non-finite"):
            make_model(initial=[float("nan"), 0.4])

    def test_within_tolerance(self):
        model = make_model(initial=[0.6, 0.4000001])
        assert model.validate_stochastic_matrices() is True

    def test_custom_tolerance(self):
        with pytest.raises(ModelValidationError):
            make_model(initial=[0.6, 0.4000001], tolerance=1e-9)

    def test_validation_can_be_disabled(self):
        model = make_model(initial=[0.5, 0.4], validate=False)

        with pytest.raises(ModelValidationError):
            model.validate_stochastic_matrices()

    def test_validation_disabled_by_config(self):
        set_config('model', 'validate', False)
        model = make_model(initial=[0.5, 0.4])
        assert model.pi.sum() == pytest.approx(0.9)

    def test_malformed_file_distribution(self, weather_text):
        text = weather_text.replace("0.4 0.6\n", "0.4 0.7\n")

        with pytest.raises(ModelValidationError):
            HiddenMarkovModel.from_text(text)


class TestLookups:
    """Name-keyed probability lookups."""

    def test_transition_probability(self, weather_model):
        assert weather_model.transition_probability("Rainy", "Sunny") == 0.3
        assert weather_model.transition_probability("Sunny", "Sunny") == 0.6

    def test_emission_probability(self, weather_model):
        assert weather_model.emission_probability("Rainy", "Shop") == 0.9
        assert weather_model.emission_probability("Sunny", "Walk") == 0.6

    def test_initial_probability(self, weather_model):
        assert weather_model.initial_probability("Sunny") == 0.4

    def test_initial_and_step_joints(self, weather_model):
        assert weather_model.initial_joint("Walk", "Sunny") == pytest.approx(0.24)
        assert weather_model.step_joint("Shop", "Sunny", "Rainy") == pytest.approx(0.36)

    def test_unknown_from_state(self, weather_model):
        with pytest.raises(UnknownStateError, match="No such state: Foggy"):
            weather_model.transition_probability("Foggy", "Rainy")

    def test_unknown_to_state(self, weather_model):
        with pytest.raises(UnknownStateError) as exc_info:
            weather_model.transition_probability("Rainy", "Foggy")
        assert exc_info.value.name == "Foggy"

    def test_unknown_emission_state(self, weather_model):
        with pytest.raises(UnknownStateError):
            weather_model.emission_probability("Foggy", "Walk")

    def test_unknown_symbol(self, weather_model):
        with pytest.raises(UnknownSymbolError, match="No such output: Swim"):
            weather_model.emission_probability("Rainy", "Swim")

    def test_unknown_initial_state(self, weather_model):
        with pytest.raises(UnknownStateError):
            weather_model.initial_probability("Foggy")

    def test_lookup_errors_are_library_errors(self, weather_model):
        with pytest.raises(HMMDecoderError):
            weather_model.initial_probability("Foggy")
        with pytest.raises(KeyError):
            weather_model.symbol_index("Swim")

    def test_unhashable_name(self, weather_model):
        with pytest.raises(UnknownStateError):
            weather_model.state_index(["Rainy"])

    def test_encode_and_decode(self, weather_model):
        np.testing.assert_array_equal(weather_model.encode_observations(["Shop", "Walk"]), [1, 0])
        np.testing.assert_array_equal(weather_model.encode_states(["Sunny"]), [1])
        assert weather_model.decode_states([1, 0, 0]) == ("Sunny", "Rainy", "Rainy")


class TestImmutability:
    """Models are never changed after construction."""

    def test_tables_are_read_only(self, weather_model):
        with pytest.raises(ValueError):
            weather_model.A[0, 0] = 1.0
        with pytest.raises(ValueError):
            weather_model.log_B[0, 0] = 0.0

    def test_attributes_are_read_only(self, weather_model):
        with pytest.raises(AttributeError):
            weather_model.states = ("x",)

    def test_input_arrays_are_copied(self):
        A = np.array([[0.7, 0.3], [0.4, 0.6]])
        model = make_model(transitions=A)

        A[0, 0] = 0.0
        assert model.A[0, 0] == 0.7

    def test_summary(self, weather_model):
        summary = weather_model.summary()

        assert summary['states'] == ["Rainy", "Sunny"]
        assert summary['transitions'] == [[0.7, 0.3], [0.4, 0.6]]
        assert summary['nominal_length'] == 2
