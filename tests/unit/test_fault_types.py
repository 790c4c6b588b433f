"""Tests for the exception hierarchy and numerical validation helpers."""

import pytest
import torch

from homeonet.errors import ConcurrencyFault, ConfigurationError, HomeonetError, ModelingFault
from homeonet.utils.numerical_validation import (
    set_numerical_validation,
    validate_finite,
    validate_finite_tensor,
    validate_non_negative_tensor,
)


@pytest.mark.unit
@pytest.mark.parametrize("error_type", [ConfigurationError, ModelingFault, ConcurrencyFault])
def test_hierarchy(error_type):
    assert issubclass(error_type, HomeonetError)


@pytest.mark.unit
def test_modeling_fault_message_names_unit():
    fault = ModelingFault("exc->inh", "weight is negative", unit=4)
    assert str(fault) == "[exc->inh, unit 4] weight is negative"
    assert fault.component == "exc->inh"
    assert fault.unit == 4


@pytest.mark.unit
def test_modeling_fault_without_unit():
    fault = ModelingFault("cortex", "threshold is NaN")
    assert str(fault) == "[cortex] threshold is NaN"
    assert fault.unit is None


@pytest.mark.unit
class TestValidation:

    def test_scalar_nan(self):
        with pytest.raises(ModelingFault, match="NaN"):
            validate_finite(float("nan"), "lambda_hp", "exc")

    def test_scalar_out_of_range(self):
        with pytest.raises(ModelingFault, match="outside valid range"):
            validate_finite(2.0, "gain", "exc", valid_range=(0.0, 1.0))

    def test_tensor_reports_first_bad_unit(self):
        values = torch.tensor([1.0, 2.0, float("inf"), float("nan")])
        with pytest.raises(ModelingFault) as excinfo:
            validate_finite_tensor(values, "threshold", "exc")
        assert excinfo.value.unit == 2

    def test_unit_index_maps_connection_to_target(self):
        weights = torch.tensor([0.5, -0.1, 0.2])
        with pytest.raises(ModelingFault) as excinfo:
            validate_non_negative_tensor(weights, "weight", "node", unit_index=torch.tensor([7, 9, 9]))
        assert excinfo.value.unit == 9

    def test_disabled_validation_passes_everything(self):
        set_numerical_validation(False)
        validate_non_negative_tensor(torch.tensor([-1.0, float("nan")]), "weight", "node")
        validate_finite(float("inf"), "x", "node")
