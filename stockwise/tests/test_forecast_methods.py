"""
Testes para a biblioteca de métodos de forecast
"""
import pytest

from stockwise.inventory_intelligence.forecast_methods import (
    METHOD_GENERATORS,
    InvalidArgumentError,
    croston,
    generate_fitted,
    holt_trend_smoothing,
    seasonal_naive,
    simple_moving_average,
    single_exponential_smoothing,
    tsb,
)
from stockwise.inventory_intelligence.models import ForecastMethod


SERIES = [12, 15, 11, 18, 14, 0, 9, 21]


class TestF1_Smoothing:
    """F1: Médias móveis e suavização exponencial."""

    def test_sma_window_one_is_identity(self):
        """F1.1: SMA(1) devolve a série de entrada."""
        assert simple_moving_average(SERIES, 1) == [float(v) for v in SERIES]

    def test_sma_trailing_mean(self):
        """F1.2: Média dos últimos N (menos no início)."""
        assert simple_moving_average([3, 6, 9, 12], 3) == pytest.approx([3, 4.5, 6, 9])

    @pytest.mark.parametrize("window", [0, -1])
    def test_sma_invalid_window(self, window):
        """F1.3: Janela não positiva é erro de argumento."""
        with pytest.raises(InvalidArgumentError):
            simple_moving_average(SERIES, window)

    def test_invalid_argument_is_value_error(self):
        assert issubclass(InvalidArgumentError, ValueError)

    def test_ses_alpha_one_is_identity(self):
        """F1.4: SES(α=1) devolve a série de entrada."""
        assert single_exponential_smoothing(SERIES, 1.0) == pytest.approx(SERIES)

    def test_ses_smoothing(self):
        assert single_exponential_smoothing([10, 20], 0.5) == pytest.approx([10, 15])

    def test_empty_inputs(self):
        assert simple_moving_average([]) == []
        assert single_exponential_smoothing([]) == []
        assert holt_trend_smoothing([]).forecast == []


class TestF2_Holt:
    """F2: Holt (nível + tendência)."""

    def test_holt_linear_series(self):
        """F2.1: forecast[0] = v[0], depois nível + tendência."""
        result = holt_trend_smoothing([1, 2, 3], alpha=0.5, beta=0.5)

        assert result.level == pytest.approx([1, 2, 3])
        assert result.trend == pytest.approx([1, 1, 1])
        assert result.forecast == pytest.approx([1, 3, 4])

    def test_holt_single_value_has_zero_trend(self):
        result = holt_trend_smoothing([5])
        assert result.trend == [0.0]
        assert result.forecast == [5.0]


class TestF3_SeasonalNaive:
    """F3: Seasonal naive."""

    def test_seasonal_naive(self):
        """F3.1: Valor de uma estação atrás quando existe."""
        assert seasonal_naive([1, 2, 3, 4, 5], 2) == [1, 2, 1, 2, 3]

    def test_invalid_season_length(self):
        """F3.2: Comprimento de estação não positivo é erro de argumento."""
        with pytest.raises(InvalidArgumentError):
            seasonal_naive([1, 2, 3], 0)


class TestF4_Intermittent:
    """F4: Croston e TSB."""

    def test_croston_zero_series(self):
        """F4.1: Série toda a zero → forecast todo a zero."""
        assert croston([0, 0, 0, 0]).forecast == [0.0] * 4

    def test_tsb_zero_series(self):
        """F4.2: Série toda a zero → forecast todo a zero."""
        assert tsb([0, 0, 0, 0]).forecast == [0.0] * 4

    def test_croston_updates(self):
        """F4.3: Intervalo cresce em períodos sem procura e é suavizado com procura."""
        result = croston([0, 5], alpha=0.3)

        assert result.interval == pytest.approx([2.1, 1.77])
        assert result.demand == pytest.approx([5, 5])
        assert result.forecast == pytest.approx([5 / 2.1, 5 / 1.77])

    def test_tsb_updates(self):
        """F4.4: Probabilidade inicial = fração de períodos com procura."""
        result = tsb([0, 4], alpha=0.3, beta=0.1)

        assert result.probability == pytest.approx([0.45, 0.505])
        assert result.forecast == pytest.approx([1.8, 2.02])

    def test_empty_inputs(self):
        assert croston([]).forecast == []
        assert tsb([]).forecast == []


class TestF5_Generators:
    """F5: Parametrização usada pelo avaliador."""

    def test_all_methods_registered(self):
        assert set(METHOD_GENERATORS) == set(ForecastMethod)

    @pytest.mark.parametrize("method", list(ForecastMethod))
    def test_fitted_length_matches_input(self, method):
        """F5.1: Cada método devolve série com o mesmo comprimento."""
        assert len(generate_fitted(method, SERIES)) == len(SERIES)

    def test_generate_fitted_accepts_string(self):
        assert generate_fitted("SMA", [3, 6, 9]) == pytest.approx([3, 4.5, 6])
