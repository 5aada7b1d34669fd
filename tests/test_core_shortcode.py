# tests/test_core_shortcode.py
"""
Testes para `app.core.shortcode`: geração base62, alocação com limite de
tentativas e validação de códigos informados pelo usuário.
"""

# ========================
# --- Importações ---
# ========================
from unittest.mock import AsyncMock
import pytest

from app.core.exceptions import ShortCodeExhaustedError
from app.core.shortcode import (ALPHABET, DEFAULT_LENGTH, allocate_short_code,
                                generate_short_code, is_valid_short_code)

# ========================
# --- Testes para generate_short_code ---
# ========================
def test_alphabet_is_base62():
    assert len(ALPHABET) == 62
    assert len(set(ALPHABET)) == 62
    assert ALPHABET.isalnum()

def test_generate_short_code_default_length_and_alphabet():
    print("\nTeste: 200 códigos gerados têm 8 caracteres do alfabeto base62.")
    for _ in range(200):
        code = generate_short_code()
        assert len(code) == DEFAULT_LENGTH
        assert all(char in ALPHABET for char in code), f"Caractere fora do alfabeto em '{code}'"

@pytest.mark.parametrize("length", [1, 4, 12, 20])
def test_generate_short_code_custom_length(length):
    assert len(generate_short_code(length)) == length

def test_generate_short_code_rejects_non_positive_length():
    with pytest.raises(ValueError):
        generate_short_code(0)

def test_generate_short_code_is_not_constant():
    codes = {generate_short_code() for _ in range(50)}
    assert len(codes) > 1

# ========================
# --- Testes para allocate_short_code ---
# ========================
@pytest.mark.asyncio
async def test_allocate_returns_first_available_candidate():
    is_available = AsyncMock(side_effect=[False, False, True])

    code = await allocate_short_code(is_available)

    assert is_available.await_count == 3
    assert code == is_available.await_args_list[-1].args[0]
    assert is_valid_short_code(code)

@pytest.mark.asyncio
async def test_allocate_raises_after_exactly_max_attempts():
    """Com o predicado sempre falso, são feitas exatamente 10 consultas."""
    print("\nTeste: predicado sempre ocupado -> ShortCodeExhaustedError após 10 tentativas.")
    is_available = AsyncMock(return_value=False)

    with pytest.raises(ShortCodeExhaustedError) as exc_info:
        await allocate_short_code(is_available)

    assert is_available.await_count == 10
    assert exc_info.value.attempts == 10

@pytest.mark.asyncio
async def test_allocate_respects_custom_length_and_attempts():
    is_available = AsyncMock(return_value=False)
    with pytest.raises(ShortCodeExhaustedError):
        await allocate_short_code(is_available, length=5, max_attempts=3)
    assert is_available.await_count == 3
    assert all(len(c.args[0]) == 5 for c in is_available.await_args_list)

# ========================
# --- Testes para is_valid_short_code ---
# ========================
@pytest.mark.parametrize("code", ["abcd", "my-link_01", "A" * 20, "Ab3x9Kq2"])
def test_is_valid_short_code_accepts(code):
    assert is_valid_short_code(code) is True

@pytest.mark.parametrize("code", ["abc", "A" * 21, "com espaco", "ação", "a/b/c/d", "", None, 1234])
def test_is_valid_short_code_rejects(code):
    assert is_valid_short_code(code) is False
