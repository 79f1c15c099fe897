import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError, CancelledError
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from allocation_health.assignment_ledger import AssignmentLedger
from allocation_health.budget_calculator import calculate_budget
from allocation_health.compliance_report import build_compliance_report, count_assigned_teachers
from allocation_health.utilization import analyze_utilization
from allocation_health.utils.error_definitions import (
    BaseAllocationError, FetchTimeoutError, UpstreamUnavailableError,
)
from allocation_health.utils.types import AllocationHealthReport, ReportSettings, UtilizationAnalysis

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ReportServices:
    """健全性レポートが依存する外部サービスの組"""
    plan_service: Any
    assignment_service: Any
    budget_service: Any
    staffing_service: Any
    teacher_directory: Optional[Any] = None

    @classmethod
    def from_store(cls, store) -> "ReportServices":
        """全インターフェースを1つで実装するストア (InMemoryAllocationStore など) から組み立てる。"""
        return cls(store, store, store, store, store)


def _fetch(description: str, func: Callable[..., T], *args: Any, timeout: float) -> T:
    """
    外部サービス呼び出しをタイムアウト付きで実行する。
    タイムアウト/キャンセルは FetchTimeoutError、接続エラーは UpstreamUnavailableError に変換する。
    それ以外の例外 (NotFoundError など) はそのまま伝播させる。

    注意: 実行中のスレッドは中断できないため、タイムアウト後も呼び出しは
    バックグラウンドで最後まで実行され続ける。インタープリタ終了時には
    そのスレッドの完了を待つ。
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(func, *args)
    try:
        return future.result(timeout=timeout)
    except (FutureTimeoutError, CancelledError) as e:
        logger.error(f"{description} がタイムアウトしました ({timeout}秒)。")
        raise FetchTimeoutError(f"{description} が {timeout} 秒以内に完了しませんでした。") from e
    except BaseAllocationError:
        raise
    except (ConnectionError, OSError) as e:
        logger.error(f"{description} 中に外部サービスへ接続できませんでした: {e}", exc_info=True)
        raise UpstreamUnavailableError(f"{description} に失敗しました: {e}") from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def build_health_report(
    plan_id: int,
    services: ReportServices,
    settings: Optional[ReportSettings] = None,
) -> AllocationHealthReport:
    """
    計画の健全性レポートを生成する。

    計画の取得 -> 台帳の取得 -> 予算設定の取得 -> 人員要件の取得 の順に外部サービスを呼び出し、
    いずれかが失敗した場合はレポートを生成せずに例外をそのまま伝播させる。再試行は行わない。
    """
    settings = settings or ReportSettings()
    timeout = settings.fetch_timeout_seconds
    logger.info(f"計画(ID: {plan_id}) の健全性レポート生成を開始します。")

    plan = _fetch("計画の取得", services.plan_service.get_plan, plan_id, timeout=timeout)
    ledger = AssignmentLedger(services.plan_service, services.assignment_service)
    rows = _fetch("割り当ての取得", ledger.assignments_for_plan, plan_id, timeout=timeout)
    budget_config = _fetch("予算設定の取得", services.budget_service.get_budget, plan["academic_year_id"], timeout=timeout)
    staffing = _fetch("人員要件の取得", services.staffing_service.get_requirements, plan_id, timeout=timeout)

    budget = calculate_budget(rows, budget_config)
    report = build_compliance_report(plan, budget, staffing, count_assigned_teachers(rows))

    logger.info(
        f"計画(ID: {plan_id}) の健全性レポートを生成しました。"
        f"準拠={report.is_budget_compliant}, 充足率={report.fulfillment_percentage:.1f}%"
    )
    return report


def build_latest_health_report(
    services: ReportServices,
    settings: Optional[ReportSettings] = None,
) -> AllocationHealthReport:
    """最も新しく作成された計画の健全性レポートを生成する。"""
    settings = settings or ReportSettings()
    plan_id = _fetch("最新計画の特定", services.plan_service.latest_plan_id, timeout=settings.fetch_timeout_seconds)
    logger.info(f"最新の計画として ID: {plan_id} を使用します。")
    return build_health_report(plan_id, services, settings)


def build_utilization_analysis(
    plan_id: int,
    services: ReportServices,
    settings: Optional[ReportSettings] = None,
) -> UtilizationAnalysis:
    """計画内の割り当て件数から在籍教員の稼働状況を分析する。"""
    if services.teacher_directory is None:
        raise UpstreamUnavailableError("教員ディレクトリサービスが設定されていません。")
    settings = settings or ReportSettings()
    timeout = settings.fetch_timeout_seconds

    ledger = AssignmentLedger(services.plan_service, services.assignment_service)
    rows = _fetch("割り当ての取得", ledger.assignments_for_plan, plan_id, timeout=timeout)
    teachers = _fetch("教員一覧の取得", services.teacher_directory.list_active_teachers, timeout=timeout)
    return analyze_utilization(teachers, rows)
