"""
Unit tests for Brazilian document/phone helpers
"""
import pytest

from app.utils.br import (
    is_valid_cpf,
    is_valid_phone,
    normalize_cep,
    normalize_cpf_cnpj,
    normalize_mobile_phone,
    only_digits,
)


class TestCpf:
    @pytest.mark.parametrize("value", ["529.982.247-25", "52998224725", "111.444.777-35"])
    def test_valid(self, value):
        assert is_valid_cpf(value)

    @pytest.mark.parametrize("value", ["529.982.247-26", "11111111111", "1234567890", "", None])
    def test_invalid(self, value):
        assert not is_valid_cpf(value)

    def test_normalize_cpf_cnpj(self):
        assert normalize_cpf_cnpj("529.982.247-25") == "52998224725"
        assert normalize_cpf_cnpj("11.222.333/0001-81") == "11222333000181"
        assert normalize_cpf_cnpj("123") is None


class TestPhone:
    def test_strips_country_code(self):
        assert normalize_mobile_phone("+55 (11) 98765-4321") == "11987654321"

    def test_keeps_local_number(self):
        assert normalize_mobile_phone("(21) 3333-4444") == "2133334444"

    def test_empty(self):
        assert normalize_mobile_phone(None) is None

    @pytest.mark.parametrize("value,ok", [
        ("11987654321", True),
        ("1133334444", True),
        ("01987654321", False),
        ("987654321", False),
    ])
    def test_is_valid_phone(self, value, ok):
        assert is_valid_phone(value) is ok


def test_normalize_cep():
    assert normalize_cep("01310-100") == "01310100"
    assert normalize_cep("0131") is None


def test_only_digits():
    assert only_digits("a1-b2.c3") == "123"
    assert only_digits(None) == ""
