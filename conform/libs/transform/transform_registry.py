"""文本 transform 注册表与调度器。

职责：
1) 维护 transform 注册表（标识符 -> 函数），进程启动时装入内置 transform。
2) 按标识符顺序把多个 transform 串成管道，从左到右依次作用于一个字符串。
3) 遇到未注册的标识符时跳过该步骤（值原样传递），不抛异常。

并发约定：
- 读（`get` / `dispatch`）不加锁，直接读取当前映射的快照。
- 写（`register` / `unregister`）持锁，并用“复制后整体替换”的方式发布新映射，
  因此正在进行的 dispatch 永远看到一个完整、一致的注册表。
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional

from conform.core.types import TransformFunc
from conform.libs.transform.builtin_transforms import BUILTIN_TRANSFORMS
from conform.observability.logger import get_logger

logger = get_logger(__name__)


def _checked_call(identifier: str, func: TransformFunc, value: str) -> str:
    result = func(value)
    if not isinstance(result, str):
        raise TypeError(
            f"Transform '{identifier}' returned {type(result).__name__}, expected str"
        )
    return result


class TransformRegistry:
    """基于注册表的 transform 调度器。"""

    def __init__(self, include_builtins: bool = True) -> None:
        self._lock = threading.Lock()
        self._transforms: dict[str, TransformFunc] = (
            dict(BUILTIN_TRANSFORMS) if include_builtins else {}
        )

    @staticmethod
    def _normalize_name(name: str) -> str:
        identifier = name.strip() if isinstance(name, str) else ""
        if not identifier:
            raise ValueError("Transform name cannot be empty")
        return identifier

    def register(self, name: str, func: TransformFunc) -> None:
        """注册（或覆盖）一个 transform。

        参数说明：
        - name: 标识符，区分大小写；首尾空白会被去掉。
        - func: `str -> str` 的可调用对象。

        同名重复注册时后者生效，可用于覆盖内置 transform。
        """

        identifier = self._normalize_name(name)

        if not callable(func):
            raise TypeError(f"Transform '{identifier}' must be callable")

        with self._lock:
            replaced = identifier in self._transforms
            updated = dict(self._transforms)
            updated[identifier] = func
            self._transforms = updated

        if replaced:
            logger.debug("Transform '%s' overridden", identifier)

    def register_pipeline(self, name: str, identifiers: Iterable[str]) -> None:
        """把一组标识符注册为一个组合 transform。

        步骤解析规则：
        - 与管道同名的步骤在注册时绑定到当前已注册的函数，
          因此 `register_pipeline("trim", ["trim", "lower"])` 是在内置 trim 之后追加 lower；
          若此时尚无同名 transform，该步骤被丢弃。
        - 其他步骤在调用时才解析，之后对它们的覆盖同样生效。
        - 调用过程中再次进入同一个管道（A -> B -> A）时，内层调用原样返回并记录警告。
        """

        identifier = self._normalize_name(name)
        steps = tuple(identifiers)
        if not steps:
            raise ValueError(f"Pipeline '{identifier}' cannot be empty")

        previous = self._transforms.get(identifier)
        resolved: list[str | TransformFunc] = []
        for step in steps:
            if step != identifier:
                resolved.append(step)
            elif previous is not None:
                resolved.append(previous)
            else:
                logger.warning("Pipeline '%s' refers to itself before it exists; step dropped", identifier)

        active = threading.local()

        def pipeline(value: str) -> str:
            if getattr(active, "running", False):
                logger.warning("Pipeline '%s' re-entered through a loop; step skipped", identifier)
                return value
            active.running = True
            try:
                for step in resolved:
                    if isinstance(step, str):
                        value = self.dispatch(value, (step,))
                    else:
                        value = _checked_call(identifier, step, value)
                return value
            finally:
                active.running = False

        pipeline.__name__ = f"pipeline_{identifier}"
        self.register(identifier, pipeline)

    def unregister(self, name: str) -> bool:
        """删除一个 transform；不存在时返回 False。"""

        identifier = self._normalize_name(name)
        with self._lock:
            if identifier not in self._transforms:
                return False
            updated = dict(self._transforms)
            del updated[identifier]
            self._transforms = updated
        return True

    def get(self, name: str) -> Optional[TransformFunc]:
        # 精确匹配，不做大小写归一或前缀匹配。
        return self._transforms.get(name)

    def has(self, name: str) -> bool:
        return name in self._transforms

    def list_transforms(self) -> list[str]:
        """返回已注册标识符列表（字母序）。"""

        return sorted(self._transforms.keys())

    def dispatch(
        self,
        value: str,
        identifiers: Iterable[str],
        on_unknown: Optional[Callable[[str], None]] = None,
    ) -> str:
        """按顺序把 transform 作用于 `value`，返回最终结果。

        参数说明：
        - value: 输入文本。
        - identifiers: 标识符序列，顺序即执行顺序。
        - on_unknown: 可选回调，遇到未注册标识符时以该标识符调用一次。
        """

        # 步骤 1：取快照。整个管道只使用这一份映射。
        transforms = self._transforms

        # 步骤 2：逐个执行；前一步的输出是后一步的输入。
        for identifier in identifiers:
            func = transforms.get(identifier)
            if func is None:
                logger.debug("Unknown transform '%s' skipped", identifier)
                if on_unknown is not None:
                    on_unknown(identifier)
                continue

            value = _checked_call(identifier, func, value)

        return value


_default_registry: Optional[TransformRegistry] = None
_default_lock = threading.Lock()


def get_registry() -> TransformRegistry:
    """返回进程级默认注册表（首次调用时创建）。"""

    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = TransformRegistry()
    return _default_registry


def register(name: str, func: TransformFunc) -> None:
    """在默认注册表上注册 transform，对之后所有 `apply` 调用生效。"""

    get_registry().register(name, func)
