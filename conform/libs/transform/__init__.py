"""Transform 注册表对外导出。

为了让上层代码导入路径稳定，这里统一导出注册表、默认实例访问函数和内置表。
"""

from conform.libs.transform.builtin_transforms import BUILTIN_TRANSFORMS
from conform.libs.transform.transform_registry import (
    TransformRegistry,
    get_registry,
    register,
)

__all__ = ["BUILTIN_TRANSFORMS", "TransformRegistry", "get_registry", "register"]
