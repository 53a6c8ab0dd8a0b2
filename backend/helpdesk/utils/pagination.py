# helpdesk/utils/pagination.py
from pydantic import BaseModel

from helpdesk.core.config import settings


class PageMeta(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    has_prev: bool
    has_next: bool

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size


def meta(total: int, page: int, page_size: int) -> PageMeta:
    """
    Metadatos de una página. El tamaño se limita a MAX_PAGE_SIZE y la página
    pedida se recorta a la última existente (mínimo 1).
    """
    size = max(1, min(page_size, settings.max_page_size))
    pages = max(-(-total // size), 1)
    current = min(max(page, 1), pages)
    return PageMeta(
        page=current, page_size=size, total=total, total_pages=pages,
        has_prev=current > 1, has_next=current < pages,
    )
