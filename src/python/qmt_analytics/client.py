"""
HTTP client for the trading backend.

Fetches the raw inputs of the analytics engine (performance, transactions,
benchmark bars) plus the other dashboard payloads (strategies, summary,
daily P&L, holdings). The engine itself never performs I/O; callers fetch
with this client and pass the results in.

Endpoints:
    GET /strategies
    GET /strategy/{id}/summary
    GET /strategy/{id}/performance
    GET /strategy/{id}/transactions
    GET /strategy/{id}/daily-pnl
    GET /strategy/{id}/holdings
    GET /benchmark/{code}/range
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from .analytics.models import BenchmarkData, PerformanceData, Transaction
from .analytics.orchestrator import coerce_benchmark, coerce_performance, coerce_transactions
from .config import BackendConfig

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when a backend request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class BackendClient:
    """
    Client for the trading backend REST API.

    Example:
        >>> client = BackendClient(BackendConfig(base_url="http://localhost:8000/api"))
        >>> strategies = client.get_strategies()
        >>> perf, bench, txs = client.fetch_dashboard_inputs(strategies[0], "000300.SH")
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or BackendConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.session = session or requests.Session()
        if session is None:
            self._setup_session()

    def _setup_session(self) -> None:
        """Configure HTTP session with retries."""
        from requests.adapters import HTTPAdapter
        from urllib3.util.retry import Retry

        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON payload."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        if self.config.dry_run:
            query["dry_run"] = "true"
        url = f"{self.base_url}{path}"

        logger.debug(f"GET {url} params={query}")
        try:
            response = self.session.get(url, params=query, timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Backend request error for {url}: {e}")
            raise BackendError(f"Request failed: {e}", url=url) from e

        if not response.ok:
            logger.error(f"Backend returned {response.status_code} for {url}")
            raise BackendError(
                f"Backend returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {path}: {e}", url=url) from e

    @staticmethod
    def _date_params(start_date: Optional[str], end_date: Optional[str]) -> Dict[str, Any]:
        return {"start_date": start_date, "end_date": end_date}

    def get_strategies(self) -> List[str]:
        """List strategy identifiers."""
        data = self._get("/strategies")
        return list(data.get("strategies") or [])

    def get_summary(self, strategy_id: str, trade_date: Optional[str] = None) -> Dict[str, Any]:
        """Portfolio summary (total value, cash, holdings value, position count)."""
        return self._get(f"/strategy/{strategy_id}/summary", {"trade_date": trade_date})

    def get_performance(
        self,
        strategy_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Performance payload including ``daily_performances``."""
        params = self._date_params(start_date, end_date)
        params["use_metrics"] = "true"
        return self._get(f"/strategy/{strategy_id}/performance", params)

    def get_transactions(
        self,
        strategy_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Executed transactions."""
        params = self._date_params(start_date, end_date)
        params["limit"] = limit or self.config.transactions_limit
        data = self._get(f"/strategy/{strategy_id}/transactions", params)
        if isinstance(data, dict):
            return list(data.get("transactions") or [])
        return list(data or [])

    def get_daily_pnl(
        self,
        strategy_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Daily portfolio values (``daily_values``)."""
        data = self._get(f"/strategy/{strategy_id}/daily-pnl", self._date_params(start_date, end_date))
        return list(data.get("daily_values") or [])

    def get_holdings(
        self,
        strategy_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Holdings keyed by date (``holdings_by_date``)."""
        data = self._get(f"/strategy/{strategy_id}/holdings", self._date_params(start_date, end_date))
        return dict(data.get("holdings_by_date") or {})

    def get_benchmark_range(
        self,
        code: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Benchmark daily bars for a date range."""
        return self._get(f"/benchmark/{code}/range", self._date_params(start_date, end_date))

    def fetch_dashboard_inputs(
        self,
        strategy_id: str,
        benchmark_code: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Tuple[PerformanceData, Optional[BenchmarkData], List[Transaction]]:
        """
        Fetch and type everything ``calculate_all_metrics`` needs.

        Request failures for performance and transactions propagate. A
        failed benchmark fetch is logged and returned as None so the other
        metrics still compute. Rows that cannot be parsed are skipped with a
        warning, as in ``calculate_all_metrics``.
        """
        performance = coerce_performance(self.get_performance(strategy_id, start_date, end_date))
        if performance.strategy_id is None:
            performance.strategy_id = strategy_id

        transactions = coerce_transactions(
            self.get_transactions(strategy_id, start_date, end_date)
        )

        benchmark: Optional[BenchmarkData] = None
        if benchmark_code:
            try:
                payload = self.get_benchmark_range(benchmark_code, start_date, end_date)
            except BackendError as e:
                logger.warning(f"Benchmark {benchmark_code} unavailable: {e}")
            else:
                benchmark = coerce_benchmark(payload)
                if benchmark is not None and benchmark.code is None:
                    benchmark.code = benchmark_code

        logger.info(
            f"Fetched {strategy_id}: {performance.trading_days} days, "
            f"{len(transactions)} transactions, "
            f"{len(benchmark.data) if benchmark else 0} benchmark bars"
        )
        return performance, benchmark, transactions
