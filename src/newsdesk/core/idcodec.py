"""公开 ID 编解码.

内部自增整数 ID 不直接暴露给客户端，统一通过 hashids 编码成不透明 token。
同一个 ID 永远得到同一个 token（无随机盐），可以安全地缓存和收藏。
"""

from functools import lru_cache

from hashids import Hashids

from newsdesk.config import get_settings

DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890"


class IdCodec:
    """内部 ID 与公开 token 之间的可逆映射."""

    def __init__(
        self,
        salt: str = "",
        min_length: int = 0,
        alphabet: str = DEFAULT_ALPHABET,
    ) -> None:
        self.alphabet = alphabet
        self._hashids = Hashids(salt=salt, min_length=min_length, alphabet=alphabet)

    def encode(self, id_: int) -> str:
        """编码正整数 ID."""
        if isinstance(id_, bool) or not isinstance(id_, int) or id_ <= 0:
            msg = f"只能编码正整数 ID: {id_!r}"
            raise ValueError(msg)
        return self._hashids.encode(id_)

    def decode(self, token: str | None) -> int | None:
        """解码 token，非法输入一律返回 None."""
        if not token or not isinstance(token, str):
            return None

        # 纯数字视为内部 ID，不接受
        if token.isdigit():
            return None

        if any(ch not in self.alphabet for ch in token):
            return None

        numbers = self._hashids.decode(token)
        if len(numbers) != 1 or numbers[0] <= 0:
            return None

        # 必须能原样编码回来，防止篡改
        if self._hashids.encode(numbers[0]) != token:
            return None

        return numbers[0]


@lru_cache
def get_codec() -> IdCodec:
    """获取进程级编解码器."""
    settings = get_settings()
    return IdCodec(salt=settings.hashids_salt, min_length=settings.hashids_min_length)
