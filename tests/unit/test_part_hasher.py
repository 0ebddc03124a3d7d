"""Unit tests for per-part and composite hashing."""

import base64
import hashlib
import random

import pytest

from multipart_uploader.domain.entities.part import MultipartFile, PartDescriptor, PartLayoutError
from multipart_uploader.domain.entities.source_file import PartRangeError, SourceFile
from multipart_uploader.domain.services.part_hasher import hash_parts
from multipart_uploader.domain.value_objects.hash_algorithm import (
    HashAlgorithm,
    UnsupportedAlgorithmError,
)


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def expected_composite(data: bytes, parts: list[PartDescriptor]) -> str:
    """Composite checksum computed independently of the hasher."""
    ordered = sorted(parts, key=lambda p: p.part_number)
    digests = b"".join(hashlib.sha256(data[p.start:p.end]).digest() for p in ordered)
    return b64(hashlib.sha256(digests).digest())


@pytest.mark.unit
class TestHashParts:
    """Test the part hasher."""

    @pytest.mark.asyncio
    async def test_three_part_example(self, sample_file, sample_bytes, sample_parts):
        """Test the 250 byte, three part file."""
        result = await hash_parts("SHA-256", MultipartFile("file-1", sample_parts, sample_file))

        assert result.id == "file-1"
        assert [p.part_number for p in result.parts] == [1, 2, 3]
        assert result.parts[0].hash == b64(hashlib.sha256(sample_bytes[0:100]).digest())
        assert result.parts[2].hash == b64(hashlib.sha256(sample_bytes[200:250]).digest())
        assert result.hash == expected_composite(sample_bytes, sample_parts)

    @pytest.mark.asyncio
    async def test_deterministic(self, sample_file, sample_parts):
        """Test hashing twice yields identical results."""
        first = await hash_parts(HashAlgorithm.SHA_256, MultipartFile("f", sample_parts, sample_file))
        second = await hash_parts(HashAlgorithm.SHA_256, MultipartFile("f", sample_parts, sample_file))
        assert first == second

    @pytest.mark.asyncio
    async def test_input_order_irrelevant(self, sample_file, sample_parts):
        """Test shuffled descriptors give the same ordered output."""
        ordered = await hash_parts("SHA-256", MultipartFile("f", sample_parts, sample_file))

        shuffled_parts = list(sample_parts)
        random.Random(7).shuffle(shuffled_parts)
        shuffled_parts.reverse()
        shuffled = await hash_parts("SHA-256", MultipartFile("f", shuffled_parts, sample_file))

        assert shuffled.parts == ordered.parts
        assert shuffled.hash == ordered.hash

    @pytest.mark.asyncio
    async def test_caller_list_untouched(self, sample_file, sample_parts):
        """Test the caller's descriptor list keeps its order."""
        reversed_parts = list(reversed(sample_parts))
        await hash_parts("SHA-256", MultipartFile("f", reversed_parts, sample_file))
        assert [p.part_number for p in reversed_parts] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_single_part_is_digest_of_digest(self, sample_file, sample_bytes):
        """Test a single part composite hashes the digest, not the content."""
        parts = [PartDescriptor(part_number=1, start=0, end=250)]
        result = await hash_parts("SHA-256", MultipartFile("f", parts, sample_file))

        part_digest = hashlib.sha256(sample_bytes).digest()
        assert result.parts[0].hash == b64(part_digest)
        assert result.hash == b64(hashlib.sha256(part_digest).digest())
        assert result.hash != b64(part_digest)

    @pytest.mark.asyncio
    async def test_one_byte_change_changes_hash(self, tmp_path, sample_bytes, sample_parts):
        """Test flipping a byte in any part changes the composite."""
        original_path = tmp_path / "original.bin"
        original_path.write_bytes(sample_bytes)
        original = await hash_parts(
            "SHA-256", MultipartFile("f", sample_parts, SourceFile.from_path(original_path))
        )

        for offset in (0, 150, 249):
            mutated = bytearray(sample_bytes)
            mutated[offset] ^= 0xFF
            path = tmp_path / f"mutated-{offset}.bin"
            path.write_bytes(bytes(mutated))
            result = await hash_parts(
                "SHA-256", MultipartFile("f", sample_parts, SourceFile.from_path(path))
            )
            assert result.hash != original.hash

    @pytest.mark.asyncio
    async def test_boundaries_change_hash(self, sample_file):
        """Test the same bytes split differently give a different composite."""
        two_parts = [PartDescriptor(1, 0, 125), PartDescriptor(2, 125, 250)]
        three_parts = [PartDescriptor(1, 0, 100), PartDescriptor(2, 100, 200), PartDescriptor(3, 200, 250)]

        a = await hash_parts("SHA-256", MultipartFile("f", two_parts, sample_file))
        b = await hash_parts("SHA-256", MultipartFile("f", three_parts, sample_file))
        assert a.hash != b.hash

    @pytest.mark.asyncio
    async def test_large_file_streams_blocks(self, large_file):
        """Test parts larger than the read block hash correctly."""
        data = large_file.path.read_bytes()
        parts = [PartDescriptor(1, 0, 600_000), PartDescriptor(2, 600_000, len(data))]
        result = await hash_parts("SHA-256", MultipartFile("big", parts, large_file))
        assert result.hash == expected_composite(data, parts)

    @pytest.mark.asyncio
    async def test_unsupported_algorithm(self, sample_file, sample_parts):
        """Test unknown algorithms fail before reading."""
        with pytest.raises(UnsupportedAlgorithmError):
            await hash_parts("MD5", MultipartFile("f", sample_parts, sample_file))

    @pytest.mark.asyncio
    async def test_out_of_bounds_range(self, sample_file):
        """Test unreadable ranges propagate."""
        parts = [PartDescriptor(1, 0, 200), PartDescriptor(2, 200, 400)]
        with pytest.raises(PartRangeError):
            await hash_parts("SHA-256", MultipartFile("f", parts, sample_file))

    @pytest.mark.asyncio
    async def test_duplicate_part_numbers(self, sample_file):
        """Test duplicate part numbers are rejected."""
        parts = [PartDescriptor(1, 0, 100), PartDescriptor(1, 100, 200)]
        with pytest.raises(PartLayoutError):
            await hash_parts("SHA-256", MultipartFile("f", parts, sample_file))

    @pytest.mark.asyncio
    async def test_missing_source(self, sample_parts):
        """Test a multipart file without a source is rejected."""
        with pytest.raises(ValueError, match="has no source"):
            await hash_parts("SHA-256", MultipartFile("f", sample_parts))
