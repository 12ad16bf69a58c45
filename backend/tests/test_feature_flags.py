"""
Testes para feature flags / settings (F1)
"""
from feature_flags import FeatureFlags, UtilizationEngine


class TestF1_FeatureFlags:
    """F1: Configuração via variáveis de ambiente."""

    def test_defaults(self):
        """F1.1: Defaults (step, 20 rows, semana, edição ativa)."""
        config = FeatureFlags.get_config()
        assert config.utilization_engine == UtilizationEngine.STEP
        assert config.default_row_count == 20
        assert config.min_bar_width == 30
        assert config.default_granularity == "week"
        assert config.view_only is False
        assert config.store_timeout_sec == 30.0

    def test_env_overrides(self, monkeypatch):
        """F1.2: Variáveis BAYPLAN_* substituem os defaults."""
        monkeypatch.setenv("BAYPLAN_UTILIZATION_ENGINE", "HOURS")
        monkeypatch.setenv("BAYPLAN_DEFAULT_ROW_COUNT", "12")
        monkeypatch.setenv("BAYPLAN_DEFAULT_GRANULARITY", "month")
        monkeypatch.setenv("BAYPLAN_EXCLUDED_TEAMS", "Paint, QA ,")
        monkeypatch.setenv("BAYPLAN_VIEW_ONLY", "1")
        FeatureFlags.reset()

        config = FeatureFlags.get_config()
        assert FeatureFlags.get_utilization_engine() == UtilizationEngine.HOURS
        assert config.default_row_count == 12
        assert config.default_granularity == "month"
        assert config.excluded_teams == ["Paint", "QA"]
        assert FeatureFlags.is_view_only() is True

    def test_invalid_values_are_ignored(self, monkeypatch):
        """F1.3: Valores inválidos mantêm o default."""
        monkeypatch.setenv("BAYPLAN_UTILIZATION_ENGINE", "magic")
        monkeypatch.setenv("BAYPLAN_DEFAULT_ROW_COUNT", "-3")
        monkeypatch.setenv("BAYPLAN_MIN_BAR_WIDTH", "wide")
        monkeypatch.setenv("BAYPLAN_DEFAULT_GRANULARITY", "decade")
        monkeypatch.setenv("BAYPLAN_STORE_TIMEOUT", "soon")
        FeatureFlags.reset()

        config = FeatureFlags.get_config()
        assert config.utilization_engine == UtilizationEngine.STEP
        assert config.default_row_count == 20
        assert config.min_bar_width == 30
        assert config.default_granularity == "week"
        assert config.store_timeout_sec == 30.0

    def test_to_dict(self):
        data = FeatureFlags.to_dict()
        assert data["utilization_engine"] == "step"
        assert data["excluded_teams"] == []
