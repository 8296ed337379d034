"""EVM address validation with EIP-55 checksums."""

import re
from dataclasses import dataclass
from enum import Enum

from Crypto.Hash import keccak

_HEX_BODY = re.compile(r"^[0-9a-fA-F]*$")
ADDRESS_HEX_LENGTH = 40


class AddressStatus(Enum):
    VALID = "valid"
    MISSING_PREFIX = "missing 0x prefix"
    INVALID_LENGTH = "invalid length"
    INVALID_HEX = "invalid hex characters"
    INVALID_CHECKSUM = "invalid checksum"


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of validating one address string."""

    status: AddressStatus
    checksummed: str | None = None
    # True only when a mixed-case input matched its EIP-55 checksum
    checksum_verified: bool = False

    @property
    def is_valid(self) -> bool:
        return self.status is AddressStatus.VALID

    def describe(self) -> str:
        """One-line human readable summary."""
        if not self.is_valid:
            return f"Invalid address: {self.status.value}"
        if self.checksum_verified:
            return f"Valid address (checksum verified): {self.checksummed}"
        return f"Valid address (no checksum in input): {self.checksummed}"


def keccak256_hex(data: bytes) -> str:
    """Keccak-256 digest as lowercase hex (the pre-standard SHA-3 used by Ethereum)."""
    return keccak.new(digest_bits=256, data=data).hexdigest()


def to_checksum_address(address: str) -> str:
    """Return the EIP-55 mixed-case form of a 0x-prefixed hex address."""
    body = address[2:].lower()
    digest = keccak256_hex(body.encode("ascii"))
    return "0x" + "".join(
        char.upper() if char.isalpha() and int(digest[i], 16) >= 8 else char
        for i, char in enumerate(body)
    )


class AddressValidator:
    """Validates 0x-prefixed, 20-byte hex addresses."""

    @staticmethod
    def validate(address: str) -> ValidationResult:
        address = address.strip()
        if not address.startswith(("0x", "0X")):
            return ValidationResult(AddressStatus.MISSING_PREFIX)
        body = address[2:]
        if len(body) != ADDRESS_HEX_LENGTH:
            return ValidationResult(AddressStatus.INVALID_LENGTH)
        if not _HEX_BODY.match(body):
            return ValidationResult(AddressStatus.INVALID_HEX)

        checksummed = to_checksum_address("0x" + body)
        if body.islower() or body.isupper() or body.isdigit():
            return ValidationResult(AddressStatus.VALID, checksummed)
        if "0x" + body != checksummed:
            return ValidationResult(AddressStatus.INVALID_CHECKSUM)
        return ValidationResult(AddressStatus.VALID, checksummed, checksum_verified=True)
