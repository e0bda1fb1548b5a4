"""
工厂函数：根据 settings.PRESCRIPTION_REPOSITORY 返回对应的 Repository 实例。

新增存储只需：
  1. 在 repository/ 下新建 XxxPrescriptionRepository(BasePrescriptionRepository)
  2. 在 _build_registry() 加一行
  不需要修改 services.py 或任何业务代码。
"""

from django.conf import settings

from .base import BasePrescriptionRepository


def _build_registry() -> dict[str, type[BasePrescriptionRepository]]:
    # 延迟导入，避免在 Django apps 就绪前触发 models import
    from .django_orm import DjangoPrescriptionRepository
    from .memory import InMemoryPrescriptionRepository

    return {
        "django": DjangoPrescriptionRepository,
        "memory": InMemoryPrescriptionRepository,
    }


def get_repository() -> BasePrescriptionRepository:
    """
    每次调用都返回新实例，不做进程级单例。

    注意 "memory" 的数据只活在这个实例里，HTTP 场景请用 "django"。

    Raises:
        ValueError: PRESCRIPTION_REPOSITORY 未知
    """
    backend = getattr(settings, "PRESCRIPTION_REPOSITORY", "django")
    registry = _build_registry()
    repository_cls = registry.get(backend)

    if repository_cls is None:
        raise ValueError(
            f"Unknown PRESCRIPTION_REPOSITORY: {backend!r}. "
            f"Known backends: {list(registry.keys())}"
        )

    return repository_cls()
