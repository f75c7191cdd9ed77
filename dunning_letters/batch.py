import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .assembler import DocumentAssembler, GeneratedLetter
from .config import BATCH_DELAY
from .models import Tenant

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


@dataclass
class LetterJob:
    id: str
    tenant: Tenant
    status: str = "queued"
    result: Optional[GeneratedLetter] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    successful: int = 0
    failed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    jobs: List[LetterJob] = field(default_factory=list, repr=False)

    @property
    def total(self) -> int:
        return self.successful + self.failed


class BatchRunner:
    """
    Generates letters one tenant after another with a short pause between
    documents. A tenant that fails is recorded and the batch moves on.
    """

    def __init__(
        self,
        assembler: DocumentAssembler,
        delay: float = BATCH_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.assembler = assembler
        self.delay = delay
        self.sleep = sleep

    def run(self, tenants: Iterable[Tenant], progress: Optional[ProgressCallback] = None) -> BatchResult:
        tenants = list(tenants)
        result = BatchResult()
        level_store = self.assembler.context.level_store
        for index, tenant in enumerate(tenants, start=1):
            job = LetterJob(id=uuid.uuid4().hex[:12], tenant=tenant)
            result.jobs.append(job)
            job.status = "running"
            try:
                if progress is not None:
                    level_name = level_store.get_level_config(level_store.get_level(tenant.id)).name
                    progress(index, len(tenants), f"{level_name} für {tenant.display_name} wird erstellt...")
                job.result = self.assembler.generate_for_tenant(tenant)
            except Exception as exc:
                logger.exception("Letter for tenant %s failed", tenant.id)
                job.status = "failed"
                job.error = str(exc)
                result.failed += 1
                result.errors.append({"tenant": tenant.display_name or tenant.id, "error": str(exc)})
                continue
            job.status = "completed"
            result.successful += 1
            if self.delay:
                self.sleep(self.delay)
        logger.info(
            "Batch finished: %d successful, %d failed",
            result.successful,
            result.failed,
        )
        return result
