"""Unit tests for the sequential batch runner"""

from conftest import make_records
from dunning_letters.assembler import DocumentAssembler
from dunning_letters.batch import BatchRunner
from dunning_letters.models import Tenant


class FlakyAssembler(DocumentAssembler):
    def __init__(self, context, failing_ids):
        super().__init__(context)
        self.failing_ids = set(failing_ids)

    def generate_for_tenant(self, tenant):
        if tenant.id in self.failing_ids:
            raise RuntimeError("disk full")
        return super().generate_for_tenant(tenant)


def _tenants():
    return [
        Tenant(id=str(1000 + i), name=f"Mieter {i}", street="Hauptstraße 5", records=make_records(2))
        for i in range(3)
    ]


def test_batch_generates_every_tenant(assembler):
    sleeps = []
    result = BatchRunner(assembler, delay=0.05, sleep=sleeps.append).run(_tenants())
    assert result.successful == 3
    assert result.failed == 0
    assert result.total == 3
    assert sleeps == [0.05, 0.05, 0.05]
    assert all(job.status == "completed" for job in result.jobs)


def test_failure_is_recorded_and_batch_continues(context):
    """Test one failing tenant does not stop the others"""
    sleeps = []
    runner = BatchRunner(FlakyAssembler(context, {"1001"}), sleep=sleeps.append)
    result = runner.run(_tenants())

    assert result.successful == 2
    assert result.failed == 1
    assert result.errors == [{"tenant": "Mieter 1", "error": "disk full"}]
    assert [job.status for job in result.jobs] == ["completed", "failed", "completed"]
    assert len(sleeps) == 2


def test_progress_reports_level_and_position(assembler):
    calls = []
    BatchRunner(assembler, delay=0).run(_tenants(), progress=lambda i, n, msg: calls.append((i, n, msg)))
    assert [c[:2] for c in calls] == [(1, 3), (2, 3), (3, 3)]
    assert calls[0][2] == "Zahlungserinnerung für Mieter 0 wird erstellt..."


def test_zero_delay_never_sleeps(assembler):
    sleeps = []
    BatchRunner(assembler, delay=0, sleep=sleeps.append).run(_tenants())
    assert sleeps == []
