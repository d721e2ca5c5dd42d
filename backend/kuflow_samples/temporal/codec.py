# kuflow_samples/temporal/codec.py
# Temporal Payload 加密编解码器
#
# 开启后，Worker 发给 Temporal Server 的所有 Payload（Workflow 参数、
# Activity 参数和返回值、Signal 数据）都会先用 AES-GCM 加密，
# Server 和 KuFlow 只能看到密文。
#
# 加密后的 Payload 格式：
#   metadata: {"encoding": "binary/encrypted", "encryption-key-id": "<key id>"}
#   data:     nonce(12 字节) + 密文
#
# 使用方法：
#   codec = EncryptionCodec(key_id="sample-key", key=b"0123456789abcdef")
#   converter = dataclasses.replace(pydantic_data_converter, payload_codec=codec)

import os
from typing import Iterable, List, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from temporalio.api.common.v1 import Payload
from temporalio.converter import PayloadCodec

from kuflow_samples.core.config import Settings, settings as default_settings


ENCODING = b"binary/encrypted"
METADATA_ENCODING_KEY = "encoding"
METADATA_KEY_ID_KEY = "encryption-key-id"
NONCE_SIZE = 12


class EncryptionCodec(PayloadCodec):
    """AES-GCM Payload 编解码器"""

    def __init__(self, key_id: str, key: bytes):
        super().__init__()
        self.key_id = key_id
        # 密钥长度不对时 AESGCM 直接抛 ValueError
        self.encryptor = AESGCM(key)

    async def encode(self, payloads: Iterable[Payload]) -> List[Payload]:
        return [
            Payload(
                metadata={
                    METADATA_ENCODING_KEY: ENCODING,
                    METADATA_KEY_ID_KEY: self.key_id.encode(),
                },
                data=self.encrypt(p.SerializeToString()),
            )
            for p in payloads
        ]

    async def decode(self, payloads: Iterable[Payload]) -> List[Payload]:
        ret: List[Payload] = []
        for p in payloads:
            # 未加密的 Payload 原样返回
            if p.metadata.get(METADATA_ENCODING_KEY, b"") != ENCODING:
                ret.append(p)
                continue

            key_id = p.metadata.get(METADATA_KEY_ID_KEY, b"").decode()
            if key_id != self.key_id:
                raise ValueError(f"Unrecognized key ID {key_id}. Current key ID is {self.key_id}.")

            ret.append(Payload.FromString(self.decrypt(p.data)))
        return ret

    def encrypt(self, data: bytes) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self.encryptor.encrypt(nonce, data, None)

    def decrypt(self, data: bytes) -> bytes:
        return self.encryptor.decrypt(data[:NONCE_SIZE], data[NONCE_SIZE:], None)


def build_encryption_codec(settings: Optional[Settings] = None) -> Optional[EncryptionCodec]:
    """根据配置创建编解码器，没有配置密钥时返回 None"""
    settings = settings or default_settings
    if not settings.TEMPORAL_ENCRYPTION_KEY:
        return None
    return EncryptionCodec(
        key_id=settings.TEMPORAL_ENCRYPTION_KEY_ID,
        key=settings.TEMPORAL_ENCRYPTION_KEY.encode("utf-8"),
    )
