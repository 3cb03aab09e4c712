"""数据库基础模型导出。

仅提供 Base 定义与全部模型注册，不执行自动建表。
数据库结构由 SQL / 迁移脚本维护，测试中通过 `Base.metadata.create_all` 建表。
"""

import authcenter_api.models  # noqa: F401
from authcenter_api.models.base import Base

__all__ = ["Base"]
