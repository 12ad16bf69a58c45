"""
BayPlan - Feature Flags & Settings
==================================

Sistema de flags/configuração para o módulo de bay scheduling.
Permite alternar o engine de utilização e ajustar parâmetros do grid
sem alterar código.

Uso:
    from feature_flags import FeatureFlags, UtilizationEngine

    if FeatureFlags.get_utilization_engine() == UtilizationEngine.HOURS:
        # Utilização por horas vs capacidade
    else:
        # Step function 0/50/100

Configuração via variáveis de ambiente:
    BAYPLAN_UTILIZATION_ENGINE=hours
    BAYPLAN_DEFAULT_ROW_COUNT=20
    BAYPLAN_VIEW_ONLY=true
"""

from __future__ import annotations

import os
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class UtilizationEngine(str, Enum):
    """
    Engines de cálculo de utilização de bays.

    STEP: Step function por número de projetos (0 → 0%, 1 → 50%, 2+ → 100%)
    HOURS: Horas agendadas na semana / capacidade semanal da bay
    """
    STEP = "step"
    HOURS = "hours"


# ═══════════════════════════════════════════════════════════════════════════════
# FEATURE FLAGS CLASS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class FeatureFlagsConfig:
    """
    Configuração do bay scheduling.

    Valores default são os do dashboard original (step function, 20 rows,
    vista semanal).
    """
    utilization_engine: UtilizationEngine = UtilizationEngine.STEP

    # Grid
    default_row_count: int = 20
    min_bar_width: int = 30
    default_granularity: str = "week"
    excluded_teams: List[str] = field(default_factory=list)

    # Modo só-leitura (substitui a deteção via DOM do dashboard)
    view_only: bool = False

    # Schedule Store
    store_url: str = "http://127.0.0.1:8000"
    store_timeout_sec: float = 30.0
    database_url: str = "sqlite:///bayplan.db"


class FeatureFlags:
    """
    Singleton para gestão de flags e settings.

    Carrega configuração de variáveis de ambiente ou usa defaults.

    Uso:
        engine = FeatureFlags.get_utilization_engine()
        config = FeatureFlags.get_config()
    """

    _instance: Optional[FeatureFlagsConfig] = None

    @classmethod
    def _load_from_env(cls) -> FeatureFlagsConfig:
        """Carrega configuração de variáveis de ambiente."""
        config = FeatureFlagsConfig()

        value = os.environ.get("BAYPLAN_UTILIZATION_ENGINE")
        if value:
            try:
                config.utilization_engine = UtilizationEngine(value.lower())
                logger.info(f"Feature flag utilization_engine = {value}")
            except ValueError:
                logger.warning(f"Invalid value for BAYPLAN_UTILIZATION_ENGINE: {value}")

        int_mapping = {
            "BAYPLAN_DEFAULT_ROW_COUNT": "default_row_count",
            "BAYPLAN_MIN_BAR_WIDTH": "min_bar_width",
        }
        for env_var, attr_name in int_mapping.items():
            value = os.environ.get(env_var)
            if value:
                try:
                    parsed = int(value)
                except ValueError:
                    logger.warning(f"Invalid value for {env_var}: {value}")
                    continue
                if parsed <= 0:
                    logger.warning(f"{env_var} must be positive, got {parsed}")
                    continue
                setattr(config, attr_name, parsed)

        value = os.environ.get("BAYPLAN_DEFAULT_GRANULARITY")
        if value:
            if value.lower() in ("day", "week", "month", "quarter"):
                config.default_granularity = value.lower()
            else:
                logger.warning(f"Invalid value for BAYPLAN_DEFAULT_GRANULARITY: {value}")

        value = os.environ.get("BAYPLAN_EXCLUDED_TEAMS")
        if value:
            config.excluded_teams = [t.strip() for t in value.split(",") if t.strip()]

        value = os.environ.get("BAYPLAN_VIEW_ONLY")
        if value:
            config.view_only = value.lower() in ("true", "1", "yes")

        config.store_url = os.environ.get("BAYPLAN_STORE_URL", config.store_url)
        config.database_url = os.environ.get("BAYPLAN_DATABASE_URL", config.database_url)

        value = os.environ.get("BAYPLAN_STORE_TIMEOUT")
        if value:
            try:
                config.store_timeout_sec = float(value)
            except ValueError:
                logger.warning(f"Invalid value for BAYPLAN_STORE_TIMEOUT: {value}")

        return config

    @classmethod
    def get_config(cls) -> FeatureFlagsConfig:
        """Obtém configuração atual."""
        if cls._instance is None:
            cls._instance = cls._load_from_env()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset para recarregar config."""
        cls._instance = None

    @classmethod
    def get_utilization_engine(cls) -> UtilizationEngine:
        """Obtém engine de utilização."""
        return cls.get_config().utilization_engine

    @classmethod
    def is_view_only(cls) -> bool:
        return cls.get_config().view_only

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Exporta configuração atual (para endpoint de status)."""
        config = cls.get_config()
        return {
            "utilization_engine": config.utilization_engine.value,
            "default_row_count": config.default_row_count,
            "min_bar_width": config.min_bar_width,
            "default_granularity": config.default_granularity,
            "excluded_teams": list(config.excluded_teams),
            "view_only": config.view_only,
        }
