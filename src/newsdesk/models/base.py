"""模型公共部分：公开 ID 投影."""

from datetime import date, datetime
from typing import Any, ClassVar

from newsdesk.core.idcodec import IdCodec, get_codec


class PublicIdMixin:
    """按声明式映射对外暴露 token 而不是内部整数 ID.

    public_id_fields: 公开字段名 -> 底层整数字段名
    hidden_fields: 不对外输出的字段
    """

    public_id_fields: ClassVar[dict[str, str]] = {"x_id": "id"}
    hidden_fields: ClassVar[frozenset[str]] = frozenset({"id", "created_at", "updated_at"})

    def to_public(self, codec: IdCodec | None = None) -> dict[str, Any]:
        """转换为对外输出的字典."""
        codec = codec or get_codec()
        data: dict[str, Any] = {}

        for name, value in self.model_dump().items():  # type: ignore[attr-defined]
            if name in self.hidden_fields:
                continue
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            data[name] = value

        for public_name, field_name in self.public_id_fields.items():
            value = getattr(self, field_name, None)
            data[public_name] = codec.encode(value) if value else None

        return data
