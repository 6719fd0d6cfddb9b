"""
Testes para o Forecast Evaluator - métricas, seleção e projeção
"""
import pytest
from datetime import timedelta

from stockwise.inventory_intelligence.forecast_evaluator import (
    DEFAULT_METHODS,
    ForecastEvaluation,
    build_confidence_band,
    build_forecast,
    compute_mape,
    compute_smape,
    compute_wape,
    create_forecast_summary,
    evaluate_forecasts,
    pick_best_forecast,
)
from stockwise.inventory_intelligence.models import (
    DemandSeries,
    ForecastError,
    ForecastMethod,
    ForecastPeriod,
)


class TestE1_Metrics:
    """E1: MAPE, WAPE, SMAPE."""

    def test_mape_skips_zero_actuals(self):
        """E1.1: MAPE só sobre períodos com procura."""
        assert compute_mape([10, 20, 0], [5, 20, 3]) == pytest.approx(25.0)

    def test_mape_without_demand_is_none(self):
        assert compute_mape([0, 0], [1, 1]) is None

    def test_wape(self):
        assert compute_wape([10, 20], [5, 20]) == pytest.approx(100 * 5 / 30)

    def test_wape_zero_denominator(self):
        """E1.2: Σ|a| = 0 → 0."""
        assert compute_wape([0, 0], [4, 4]) == 0.0

    def test_smape(self):
        assert compute_smape([10], [0]) == pytest.approx(200.0)
        assert compute_smape([10, 0], [10, 0]) == pytest.approx(0.0)

    def test_smape_zero_periods_count_in_mean(self):
        """E1.4: Períodos com a = f = 0 entram no denominador com erro zero."""
        assert compute_smape([10, 0], [5, 0]) == pytest.approx(100 / 3)

    def test_smape_all_skipped(self):
        """E1.3: Todos os períodos com a = f = 0 → 0."""
        assert compute_smape([0, 0], [0, 0]) == 0.0

    def test_short_forecast_padded_with_zeros(self):
        assert compute_wape([10, 10], [10]) == pytest.approx(50.0)


class TestE2_Selection:
    """E2: Avaliação e escolha do melhor método."""

    def test_evaluates_every_default_method(self, series_factory):
        evaluations = evaluate_forecasts(series_factory([5, 8, 6, 9, 7, 10]))
        assert [e.method for e in evaluations] == DEFAULT_METHODS

    def test_fitted_compared_with_next_actual(self, series_factory):
        """E2.1: fitted[i] comparado com actual[i+1]."""
        series = series_factory([10, 20, 30])
        evaluation = evaluate_forecasts(series, [ForecastMethod.SES])[0]
        expected = compute_wape([20, 30], evaluation.series[:2])
        assert evaluation.error.wape == pytest.approx(expected)

    def test_pick_lowest_wape(self):
        evaluations = [
            ForecastEvaluation(ForecastMethod.SMA, ForecastError(wape=30)),
            ForecastEvaluation(ForecastMethod.SES, ForecastError(wape=10)),
            ForecastEvaluation(ForecastMethod.HOLT, ForecastError(wape=20)),
        ]
        assert pick_best_forecast(evaluations).method == ForecastMethod.SES

    def test_tie_keeps_first(self):
        """E2.2: Empate fica com o primeiro na ordem de entrada."""
        evaluations = [
            ForecastEvaluation(ForecastMethod.HOLT, ForecastError(wape=5)),
            ForecastEvaluation(ForecastMethod.SMA, ForecastError(wape=5)),
        ]
        assert pick_best_forecast(evaluations).method == ForecastMethod.HOLT

    def test_score_falls_back_to_mape_then_smape(self):
        assert ForecastEvaluation(ForecastMethod.SMA, ForecastError(mape=7)).score == 7
        assert ForecastEvaluation(ForecastMethod.SMA, ForecastError(smape=9)).score == 9
        assert ForecastEvaluation(ForecastMethod.SMA, ForecastError()).score == float("inf")

    def test_pick_empty_is_none(self):
        assert pick_best_forecast([]) is None


class TestE3_Projection:
    """E3: Projeção e banda de confiança."""

    def test_confidence_band(self):
        low, high = build_confidence_band([10, 0], 20)
        assert low == pytest.approx([8, 0])
        assert high == pytest.approx([12, 0])

    def test_confidence_band_low_floored(self):
        low, _ = build_confidence_band([10], 150)
        assert low == [0.0]

    def test_build_forecast_flat_projection(self, series_factory):
        """E3.1: Último valor ajustado repetido no horizonte."""
        series = series_factory([3, 6, 9])
        forecast = build_forecast(series, ForecastMethod.SMA, horizon=5)

        assert forecast.horizon == 5
        assert [p.mean for p in forecast.values] == pytest.approx([6] * 5)
        assert forecast.values[0].low == pytest.approx(4.8)
        assert forecast.values[0].high == pytest.approx(7.2)
        assert forecast.get_total() == pytest.approx(30)

    def test_timestamps_follow_last_point(self, series_factory):
        """E3.2: Datas começam um período após o último ponto."""
        series = series_factory([3, 6, 9])
        last = series.points[-1].at

        daily = build_forecast(series, ForecastMethod.SMA, horizon=2)
        weekly = build_forecast(series, ForecastMethod.SMA, horizon=2, period=ForecastPeriod.WEEK)

        assert [p.at for p in daily.values] == [last + timedelta(days=1), last + timedelta(days=2)]
        assert weekly.values[1].at == last + timedelta(weeks=2)
        assert list(daily.get_series().index) == [p.at for p in daily.values]


class TestE4_Summary:
    """E4: Fluxo completo avaliar → escolher → projetar."""

    def test_flat_series_end_to_end(self, flat_series):
        """E4.1: Série plana → WAPE≈0 em todos os métodos, escolhe o primeiro (SMA)."""
        evaluations = evaluate_forecasts(flat_series)
        for evaluation in evaluations:
            assert evaluation.error.wape == pytest.approx(0.0, abs=1e-9)
            assert evaluation.series[-1] == pytest.approx(10.0)

        forecast = create_forecast_summary(flat_series)

        assert forecast.method == ForecastMethod.SMA
        assert forecast.error.wape == pytest.approx(0.0)
        assert len(forecast.values) == 14
        assert all(p.mean == pytest.approx(10) for p in forecast.values)
        assert forecast.values[0].low == pytest.approx(8)
        assert forecast.values[0].high == pytest.approx(12)

    def test_explicit_band_width(self, flat_series):
        forecast = create_forecast_summary(flat_series, horizon=3, error_pct=10)
        assert forecast.values[0].low == pytest.approx(9)
        assert forecast.values[0].high == pytest.approx(11)

    def test_band_from_measured_error(self, flat_series):
        """E4.2: Banda derivada do WAPE do vencedor (0 numa série plana)."""
        forecast = create_forecast_summary(flat_series, horizon=3, band_from_error=True)
        assert forecast.values[0].low == pytest.approx(10)
        assert forecast.values[0].high == pytest.approx(10)

    def test_empty_series(self, fixed_now):
        """E4.3: Série vazia → forecast a zero após 'now'."""
        series = DemandSeries(sku_id="SKU-A", location_id="LOC-1")
        forecast = create_forecast_summary(series, horizon=3, now=fixed_now)

        assert forecast.method == ForecastMethod.SMA
        assert [p.mean for p in forecast.values] == [0.0, 0.0, 0.0]
        assert forecast.values[0].at == fixed_now + timedelta(days=1)

    def test_to_dict(self, flat_series):
        data = create_forecast_summary(flat_series, horizon=2).to_dict()
        assert data["method"] == "SMA"
        assert data["period"] == "DAY"
        assert len(data["values"]) == 2
        assert data["error"]["wape"] == pytest.approx(0.0)
