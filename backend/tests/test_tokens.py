"""
Project token generation, normalization and validation
"""
import pytest

from app.services import tokens
from app.services.tokens import (
    FallbackRandomSource,
    InvalidTokenFormat,
    SecureRandomSource,
    TokenGenerator,
    default_random_source,
    is_valid_token,
    normalize_token,
    parse_token,
)
from conftest import ScriptedSource


class TestNormalize:
    """normalize_token strips every whitespace character and uppercases"""

    @pytest.mark.parametrize('raw, expected', [
        ('  jw-a1b2-c3d4-e5f6 ', 'JW-A1B2-C3D4-E5F6'),
        ('jw - a1b2 - c3d4 - e5f6', 'JW-A1B2-C3D4-E5F6'),
        ('JW-A1B2-C3D4-E5F6\n', 'JW-A1B2-C3D4-E5F6'),
        ('\tjw-a1b2- c3d4-e5f6', 'JW-A1B2-C3D4-E5F6'),
        ('', ''),
        ('   ', ''),
        ('hello world', 'HELLOWORLD'),
    ])
    def test_examples(self, raw, expected):
        assert normalize_token(raw) == expected

    @pytest.mark.parametrize('raw', [
        ' jw-a1b2-c3d4-e5f6 ', 'not a token', 'JW-AAAA-BBBB-CCCC', 'x y\tz\n',
    ])
    def test_idempotent(self, raw):
        once = normalize_token(raw)
        assert normalize_token(once) == once

    def test_result_need_not_be_valid(self):
        assert not is_valid_token(normalize_token('jw-123'))


class TestValidate:

    @pytest.mark.parametrize('candidate', [
        'JW-A1B2-C3D4-E5F6',
        'JW-0000-0000-0000',
        'JW-ZZZZ-9999-AAAA',
    ])
    def test_accepts_well_formed(self, candidate):
        assert is_valid_token(candidate)

    @pytest.mark.parametrize('candidate', [
        'jw-a1b2-c3d4-e5f6',          # lowercase: validation does not normalize
        ' JW-A1B2-C3D4-E5F6',
        'JW-A1B2-C3D4-E5F6\n',        # trailing newline
        'JW-A1B2-C3D4-E5F',
        'JW-A1B2-C3D4-E5F67',
        'JW-A1B2C3D4-E5F6',
        'JX-A1B2-C3D4-E5F6',
        'JW-A1B2-C3D4-E5F_',
        'JW_A1B2_C3D4_E5F6',
        '',
    ])
    def test_rejects_malformed(self, candidate):
        assert not is_valid_token(candidate)

    @pytest.mark.parametrize('candidate', [None, 12345, b'JW-A1B2-C3D4-E5F6', ['JW-A1B2-C3D4-E5F6']])
    def test_non_strings_are_invalid(self, candidate):
        assert is_valid_token(candidate) is False

    def test_parse_normalizes_then_validates(self):
        assert parse_token(' jw-a1b2-c3d4-e5f6 ') == 'JW-A1B2-C3D4-E5F6'

    def test_parse_error_names_expected_format(self):
        with pytest.raises(InvalidTokenFormat) as exc_info:
            parse_token('jw-123')
        assert exc_info.value.candidate == 'JW-123'
        assert 'JW-XXXX-XXXX-XXXX' in str(exc_info.value)


class TestGenerator:

    def test_generated_tokens_are_valid(self):
        generator = TokenGenerator()
        for _ in range(1000):
            assert is_valid_token(generator.generate())

    def test_generated_tokens_are_distinct(self):
        generator = TokenGenerator()
        batch = [generator.generate() for _ in range(10_000)]
        assert len(set(batch)) == len(batch)

    def test_bytes_map_modulo_36(self):
        # 0..25 → A..Z, 26..35 → 0..9, 36 wraps back to A
        class FixedSource:
            is_secure = True

            def read(self, n):
                return bytes([0, 1, 2, 3, 25, 26, 35, 36, 61, 62, 255, 71])

        token = TokenGenerator(FixedSource()).generate()
        assert token == 'JW-ABCD-Z09A-Z0D9'
        assert is_valid_token(token)

    def test_scripted_source_reproduces_token(self):
        generator = TokenGenerator(ScriptedSource(['JW-K3X9-Q2A7-M4P8']))
        assert generator.generate() == 'JW-K3X9-Q2A7-M4P8'

    def test_short_read_is_rejected(self):
        class ShortSource:
            is_secure = True

            def read(self, n):
                return b'\x00' * (n - 1)

        with pytest.raises(ValueError):
            TokenGenerator(ShortSource()).generate()

    def test_secure_by_default(self):
        assert TokenGenerator().is_secure is True
        assert isinstance(default_random_source(), SecureRandomSource)

    def test_fallback_source_still_produces_valid_tokens(self):
        generator = TokenGenerator(FallbackRandomSource(seed=42))
        assert generator.is_secure is False
        assert is_valid_token(generator.generate())

    def test_fallback_source_is_deterministic_when_seeded(self):
        first = TokenGenerator(FallbackRandomSource(seed=7)).generate()
        second = TokenGenerator(FallbackRandomSource(seed=7)).generate()
        assert first == second

    def test_degrades_when_os_randomness_missing(self, monkeypatch):
        def unavailable(n=None):
            raise NotImplementedError('no urandom')

        monkeypatch.setattr(tokens.secrets, 'token_bytes', unavailable)

        source = default_random_source()
        assert isinstance(source, FallbackRandomSource)
        generator = TokenGenerator()
        assert generator.is_secure is False
        assert is_valid_token(generator.generate())
