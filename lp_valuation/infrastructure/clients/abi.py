from __future__ import annotations


WORD_HEX_LEN = 64


def encode_uint(value: int) -> str:
    if value < 0 or value >= 2**256:
        raise ValueError("uint256 out of range.")
    return f"{value:064x}"


def encode_int(value: int) -> str:
    if value < -(2**255) or value >= 2**255:
        raise ValueError("int256 out of range.")
    return f"{value % 2**256:064x}"


def encode_address(address: str) -> str:
    raw = address.lower().removeprefix("0x")
    if len(raw) != 40:
        raise ValueError(f"Invalid address: {address}")
    int(raw, 16)
    return raw.rjust(WORD_HEX_LEN, "0")


def encode_call(selector: str, *words: str) -> str:
    return "0x" + selector.removeprefix("0x") + "".join(words)


def decode_words(data: str) -> list[int]:
    raw = data.removeprefix("0x")
    if len(raw) % WORD_HEX_LEN != 0:
        raise ValueError("ABI payload is not word aligned.")
    return [int(raw[i : i + WORD_HEX_LEN], 16) for i in range(0, len(raw), WORD_HEX_LEN)]


def to_signed(word: int, bits: int) -> int:
    value = word & ((1 << bits) - 1)
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def word_to_address(word: int) -> str:
    return "0x" + f"{word & ((1 << 160) - 1):040x}"
