"""
Callable signatures shared by the request wrappers.
"""

from typing import Any, Awaitable, Callable

RequestFn = Callable[[str, dict[str, Any] | None], Awaitable[Any]]
RefreshFn = Callable[[], Awaitable[Any]]
ShouldRefresh = Callable[[Exception], bool]
