"""业务异常."""


class NewsdeskError(Exception):
    """业务异常基类."""


class ArticleNotFoundError(NewsdeskError):
    """文章不存在."""


class InvalidTokenError(NewsdeskError):
    """公开 ID 无法解码."""


class PreferencesNotSetError(NewsdeskError):
    """用户尚未设置偏好."""
