import pytest

from shortlink.codes import (
    ALPHABET,
    RESERVED_CODES,
    allocate_code,
    generate_code,
    validate_format,
)
from shortlink.errors import CodeConflict, CodeSpaceExhausted, InvalidFormat, StorageFailure


def taken_by(*codes):
    calls = []

    async def is_taken(code: str) -> bool:
        calls.append(code)
        return code in codes

    is_taken.calls = calls
    return is_taken


@pytest.mark.parametrize("code", ["abc123", "ABCDEFG", "a1B2c3D4", "000000"])
def test_validate_format_accepts(code):
    assert validate_format(code)


@pytest.mark.parametrize(
    "code",
    ["ab", "abcde", "abcdefghi", "abc-12", "abc_123", "abc 123", "abcdé1", "abcdef\n", "", None, 123456],
)
def test_validate_format_rejects(code):
    assert not validate_format(code)


def test_generate_code_default_length_and_alphabet():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert set(code) <= set(ALPHABET)
        assert validate_format(code)


@pytest.mark.parametrize("length", [6, 7, 8])
def test_generate_code_length(length):
    assert len(generate_code(length)) == length


def test_alphabet_is_62_alphanumerics():
    assert len(ALPHABET) == 62
    assert ALPHABET.isalnum()


@pytest.mark.asyncio
async def test_allocate_requested_code():
    is_taken = taken_by()
    assert await allocate_code(is_taken, "MyCode1") == "MyCode1"
    assert is_taken.calls == ["MyCode1"]


@pytest.mark.asyncio
async def test_allocate_rejects_bad_format_before_storage():
    is_taken = taken_by()
    with pytest.raises(InvalidFormat):
        await allocate_code(is_taken, "ab")
    assert is_taken.calls == []


@pytest.mark.asyncio
async def test_allocate_requested_code_taken():
    with pytest.raises(CodeConflict):
        await allocate_code(taken_by("MyCode1"), "MyCode1")


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["static", "healthz", "metrics"])
async def test_allocate_refuses_reserved_words(code):
    is_taken = taken_by()
    with pytest.raises(CodeConflict):
        await allocate_code(is_taken, code)
    assert is_taken.calls == []


def test_reserved_words_cover_routed_prefixes():
    assert {"api", "static", "code", "healthz", "favicon.ico"} <= RESERVED_CODES


@pytest.mark.asyncio
async def test_allocate_generates_until_free(monkeypatch):
    candidates = iter(["aaaaaa", "bbbbbb", "cccccc"])
    monkeypatch.setattr("shortlink.codes.generate_code", lambda length=6: next(candidates))
    is_taken = taken_by("aaaaaa", "bbbbbb")

    assert await allocate_code(is_taken) == "cccccc"
    assert is_taken.calls == ["aaaaaa", "bbbbbb", "cccccc"]


@pytest.mark.asyncio
async def test_allocate_skips_generated_reserved_word(monkeypatch):
    candidates = iter(["static", "dddddd"])
    monkeypatch.setattr("shortlink.codes.generate_code", lambda length=6: next(candidates))
    is_taken = taken_by()

    assert await allocate_code(is_taken) == "dddddd"
    assert is_taken.calls == ["dddddd"]


@pytest.mark.asyncio
async def test_allocate_gives_up_after_max_attempts():
    async def always_taken(code):
        return True

    with pytest.raises(CodeSpaceExhausted) as exc_info:
        await allocate_code(always_taken, max_attempts=3)
    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value, StorageFailure)
