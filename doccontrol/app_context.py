# doccontrol/app_context.py
"""
Composition root for the doccontrol feature.

Builds every service from one AppConfig. Nothing here is persisted; each
context owns a fresh in-memory document collection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config.config_service import AppConfig, config_service
from core.helpers import date_time_helper as dt
from core.logging.logic.logger import Logger, logger as central_logger
from doccontrol.adapters.content_generator import ContentGenerator, GeminiContentGenerator
from doccontrol.adapters.pdf_exporter import DocumentExporter, ReportLabExporter
from doccontrol.logic.id_generator import IdGenerator
from doccontrol.logic.workflow_engine import WorkflowEngine
from doccontrol.services.audit_service import AuditService
from doccontrol.services.authoring_service import AuthoringService
from doccontrol.services.category_registry import CategoryRegistry
from doccontrol.services.document_store import DocumentStore
from doccontrol.services.export_service import ExportService
from doccontrol.services.notifier import LoggingNotifier, Notifier
from doccontrol.services.policy.edit_policy import EditPolicy
from doccontrol.services.request_guard import RequestGuard
from doccontrol.services.template_library import TemplateLibrary
from doccontrol.services.ui_state_service import UIStateService
from doccontrol.services.variable_profile_store import VariableProfileStore

log = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: AppConfig
    logger: Logger
    audit: AuditService
    categories: CategoryRegistry
    profiles: VariableProfileStore
    templates: TemplateLibrary
    store: DocumentStore
    authoring: AuthoringService
    exports: ExportService
    ui_state: UIStateService

    @classmethod
    def create(
        cls,
        config: Optional[AppConfig] = None,
        *,
        generator: Optional[ContentGenerator] = None,
        exporter: Optional[DocumentExporter] = None,
        notifier: Optional[Notifier] = None,
        logger: Optional[Logger] = None,
    ) -> "AppContext":
        """Wire all services; collaborators can be swapped (tests, alternative backends)."""
        config = config or config_service.app_config
        dt.set_local_timezone(config.general.timezone)

        logger = logger or central_logger
        logger.configure(
            level=config.logging.level,
            db_path=config.logging.db_path or None,
            max_entries=config.logging.max_entries,
        )
        audit = AuditService(logger, max_events=config.logging.max_entries)

        categories = CategoryRegistry()
        profiles = VariableProfileStore()
        templates = TemplateLibrary()
        engine = WorkflowEngine()
        policy = EditPolicy(config.workflow.edit_lock)

        store = DocumentStore(
            categories=categories,
            templates=templates,
            edit_policy=policy,
            audit=audit,
            notifier=notifier or LoggingNotifier(),
            doc_numbers=IdGenerator(config.workflow.doc_number_prefix, config.workflow.doc_number_pattern),
            engine=engine,
            default_approver=config.workflow.default_approver,
        )

        gen_cfg = config.generator
        generator = generator or GeminiContentGenerator(
            api_key_env=gen_cfg.api_key_env,
            model_generate=gen_cfg.model_generate,
            model_refine=gen_cfg.model_refine,
            temperature=gen_cfg.temperature,
            language=gen_cfg.language,
            timeout_seconds=gen_cfg.timeout_seconds,
        )
        exp_cfg = config.export
        exporter = exporter or ReportLabExporter(
            exp_cfg.output_dir,
            page_size=exp_cfg.page_size,
            font_name=exp_cfg.font_name,
            font_path=exp_cfg.font_path,
            watermark_unapproved=exp_cfg.watermark_unapproved,
            watermark_text=exp_cfg.watermark_text,
            create_missing_dir=True,
        )

        # one guard: generate/refine/export of the same document exclude each other
        guard = RequestGuard()
        ctx = cls(
            config=config,
            logger=logger,
            audit=audit,
            categories=categories,
            profiles=profiles,
            templates=templates,
            store=store,
            authoring=AuthoringService(store=store, generator=generator, timeout_seconds=gen_cfg.timeout_seconds,
                                       audit=audit, guard=guard),
            exports=ExportService(store=store, profiles=profiles, categories=categories, exporter=exporter,
                                  audit=audit, guard=guard),
            ui_state=UIStateService(edit_policy=policy, engine=engine),
        )
        log.info("%s %s ready (edit lock: %s)", config.general.app_name, config.general.version, policy.discipline.value)
        return ctx

    def close(self) -> None:
        self.authoring.shutdown()
