"""Tests for tenant-aware logging."""

import logging

from appointment_engine.logging_context import (
    TenantIdFilter,
    get_tenant_id,
    get_tenant_logger,
    tenant_context,
)
from tests.conftest import book


class TestTenantContext:
    def test_default_tenant(self):
        assert get_tenant_id() == "NO_TENANT"

    def test_context_sets_and_restores(self):
        with tenant_context("shop-1"):
            assert get_tenant_id() == "shop-1"
            with tenant_context("shop-2"):
                assert get_tenant_id() == "shop-2"
            assert get_tenant_id() == "shop-1"
        assert get_tenant_id() == "NO_TENANT"

    def test_filter_attached_once(self):
        logger = get_tenant_logger("tests.tenant")
        get_tenant_logger("tests.tenant")
        assert sum(isinstance(f, TenantIdFilter) for f in logger.filters) == 1

    def test_scheduler_records_carry_tenant(self, scheduler, caplog):
        caplog.set_level(logging.INFO, logger="appointment_engine.scheduler")
        book(scheduler, "10:00")
        records = [r for r in caplog.records if r.name == "appointment_engine.scheduler"]
        assert records
        assert all(r.tenant_id == "shop-test" for r in records)
