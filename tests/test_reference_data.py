import pytest

from texcopy.data import REFERENCE_MODULUS, generate_data


def test_reference_sequence_prefix():
    assert generate_data(8) == bytes([0, 2, 10, 30, 68, 130, 222, 99])


def test_reference_values_stay_below_modulus():
    data = generate_data(4096)
    assert len(data) == 4096
    assert max(data) < REFERENCE_MODULUS


def test_reference_data_is_deterministic():
    assert generate_data(300) == generate_data(300)
    assert generate_data(0) == b""


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        generate_data(-1)
