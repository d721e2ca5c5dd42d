# tests/test_codec.py
# Payload 加密编解码器测试
#
# 运行方式：
#   pytest tests/test_codec.py -v

import pytest
from temporalio.api.common.v1 import Payload
from temporalio.contrib.pydantic import pydantic_data_converter

from kuflow_samples.core.config import Settings
from kuflow_samples.temporal.client import build_data_converter
from kuflow_samples.temporal.codec import ENCODING, EncryptionCodec, build_encryption_codec
from kuflow_samples.temporal.types import WorkflowRequest

KEY = b"0123456789abcdef0123456789abcdef"


@pytest.fixture
def codec():
    return EncryptionCodec(key_id="test-key", key=KEY)


@pytest.mark.asyncio
async def test_encode_hides_payload_and_decodes_back(codec):
    original = Payload(metadata={"encoding": b"json/plain"}, data=b'{"processId": "secret"}')

    [encoded] = await codec.encode([original])

    assert encoded.metadata["encoding"] == ENCODING
    assert encoded.metadata["encryption-key-id"] == b"test-key"
    assert b"secret" not in encoded.data

    [decoded] = await codec.decode([encoded])
    assert decoded == original


@pytest.mark.asyncio
async def test_decode_passes_through_plain_payloads(codec):
    plain = Payload(metadata={"encoding": b"json/plain"}, data=b"1")

    assert await codec.decode([plain]) == [plain]


@pytest.mark.asyncio
async def test_decode_rejects_unknown_key_id(codec):
    [encoded] = await codec.encode([Payload(metadata={"encoding": b"json/plain"}, data=b"1")])
    other = EncryptionCodec(key_id="other-key", key=KEY)

    with pytest.raises(ValueError, match="Unrecognized key ID test-key"):
        await other.decode([encoded])


def test_invalid_key_length():
    with pytest.raises(ValueError):
        EncryptionCodec(key_id="test-key", key=b"short")


def test_codec_is_optional():
    assert build_encryption_codec(Settings(TEMPORAL_ENCRYPTION_KEY=None)) is None
    assert build_data_converter(Settings(TEMPORAL_ENCRYPTION_KEY=None)) is pydantic_data_converter


@pytest.mark.asyncio
async def test_data_converter_with_encryption():
    settings = Settings(TEMPORAL_ENCRYPTION_KEY=KEY.decode(), TEMPORAL_ENCRYPTION_KEY_ID="k1")
    converter = build_data_converter(settings)

    assert isinstance(converter.payload_codec, EncryptionCodec)
    assert converter.payload_converter_class is pydantic_data_converter.payload_converter_class

    request = WorkflowRequest(process_id="6f1b4a3e-8c53-4b2f-9a3c-0c0d3f4b5a61")
    [payload] = await converter.encode([request])
    assert payload.metadata["encryption-key-id"] == b"k1"

    [decoded] = await converter.decode([payload], [WorkflowRequest])
    assert decoded == request
