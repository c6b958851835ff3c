import logging
from typing import Callable, Iterable, List, Optional, Tuple

from ..crud import LinkStore
from ..errors import CodeConflict, DuplicateCodeError, InvalidCode, InvalidUrl, NotFound
from ..models import Link
from ..observability import CODE_CONFLICTS_TOTAL, LINKS_CREATED_TOTAL, REDIRECT_404_TOTAL, REDIRECT_TOTAL
from ..utils import generate_random_code
from ..validators import is_valid_code, is_valid_url

logger = logging.getLogger(__name__)

class LinkService:
    """Short-code lifecycle: create, look up, list, delete and resolve links.

    Validation happens here, before the store is touched. Uniqueness is left
    entirely to the store: a create never checks for an existing code first,
    it inserts and reacts to the store's collision signal.
    """

    def __init__(
        self,
        store: LinkStore,
        base_url: str,
        generator: Callable[[], str] = generate_random_code,
        max_generation_attempts: int = 1,
        reserved_codes: Iterable[str] = (),
    ):
        if max_generation_attempts < 1:
            raise ValueError("max_generation_attempts must be at least 1")
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.generator = generator
        self.max_generation_attempts = max_generation_attempts
        # Paths served by fixed routes; a link under one could never be resolved
        self.reserved_codes = frozenset(reserved_codes)

    def short_url(self, code: str) -> str:
        return f"{self.base_url}/{code}"

    async def create(self, url: Optional[str], custom_code: Optional[str] = None) -> Tuple[Link, str]:
        if not url or not is_valid_url(url):
            raise InvalidUrl("Invalid URL")

        if custom_code:
            if not is_valid_code(custom_code):
                raise InvalidCode("Invalid custom code. Use [A-Za-z0-9]{6,8}")
            if custom_code in self.reserved_codes:
                CODE_CONFLICTS_TOTAL.inc()
                raise CodeConflict("Code is reserved")
            try:
                link = await self.store.insert(custom_code, url)
            except DuplicateCodeError as e:
                CODE_CONFLICTS_TOTAL.inc()
                raise CodeConflict() from e
        else:
            link = await self._insert_generated(url)

        LINKS_CREATED_TOTAL.inc()
        logger.info(f"Created link {link.code} -> {link.url}")
        return link, self.short_url(link.code)

    async def _insert_generated(self, url: str) -> Link:
        # Each attempt is one fresh code plus one atomic insert
        for attempt in range(1, self.max_generation_attempts + 1):
            code = self.generator()
            if code in self.reserved_codes:
                logger.warning(f"Generated code {code} is reserved (attempt {attempt}/{self.max_generation_attempts})")
                continue
            try:
                return await self.store.insert(code, url)
            except DuplicateCodeError:
                CODE_CONFLICTS_TOTAL.inc()
                logger.warning(
                    f"Generated code {code} collided (attempt {attempt}/{self.max_generation_attempts})"
                )
        raise CodeConflict()

    async def get(self, code: str) -> Link:
        if not is_valid_code(code):
            raise InvalidCode()
        link = await self.store.get_by_code(code)
        if link is None:
            raise NotFound()
        return link

    async def list(self) -> List[Link]:
        return await self.store.list_all()

    async def delete(self, code: str) -> str:
        if not is_valid_code(code):
            raise InvalidCode()
        deleted = await self.store.delete_by_code(code)
        if deleted is None:
            raise NotFound()
        logger.info(f"Deleted link {deleted.code}")
        return deleted.code

    async def resolve(self, code: str) -> str:
        """Destination for a redirect, counting the visit.

        Malformed codes are reported exactly like unknown ones.
        """
        if not is_valid_code(code):
            REDIRECT_404_TOTAL.inc()
            raise NotFound()
        url = await self.store.increment_and_touch(code)
        if url is None:
            REDIRECT_404_TOTAL.inc()
            raise NotFound()
        REDIRECT_TOTAL.inc()
        return url
