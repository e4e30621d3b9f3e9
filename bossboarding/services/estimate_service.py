import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from bossboarding.config import settings
from bossboarding.onboarding.catalog import ONBOARDING_STAGES
from bossboarding.onboarding.progress import calculate_progress, build_timeline
from bossboarding.schemas.customer import Customer

logger = logging.getLogger(__name__)

_openai_client = None


def get_openai_client():
    """Lazy init OpenAI client."""
    global _openai_client
    if _openai_client is None and settings.OPENAI_API_KEY:
        from openai import OpenAI
        _openai_client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _openai_client


def default_onboarding_dates(now: Optional[datetime] = None) -> dict:
    """Start now, estimated completion after the standard onboarding period"""
    start = now or datetime.now(timezone.utc)
    return {
        "startDate": start.isoformat(),
        "estimatedCompletionDate": (start + timedelta(days=settings.STANDARD_ONBOARDING_DAYS)).isoformat(),
        "useAdminOverride": False,
    }


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def build_estimate_context(customer: Customer, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    start = None
    if customer.onboarding_dates:
        start = _parse_iso(customer.onboarding_dates.start_date)
    start = start or customer.created_at
    if start is not None and start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    days_elapsed = (now - start).days if start else 0

    return {
        "businessName": customer.business_name,
        "status": customer.status,
        "overallProgress": calculate_progress(customer.task_statuses),
        "daysElapsed": max(0, days_elapsed),
        "standardOnboardingDays": settings.STANDARD_ONBOARDING_DAYS,
        "currentStageId": customer.current_stage_id,
        "stages": [
            {"name": s["name"], "completed": s["completedTasks"], "total": s["totalTasks"]}
            for s in build_timeline(customer.task_statuses, customer.current_stage_id)
        ],
        "machineCount": len(customer.machines),
        "hasKiosk": bool(customer.kiosk_info and customer.kiosk_info.has_kiosk),
    }


class EstimateService:
    """Optional AI estimate of the remaining onboarding time."""

    def estimate(self, customer: Customer, now: Optional[datetime] = None) -> dict:
        client = get_openai_client()
        if not client:
            return {"success": False, "error": "AI estimation is not configured"}

        context = build_estimate_context(customer, now)
        prompt = (
            "You estimate completion dates for laundromat equipment onboarding projects. "
            f"A standard onboarding takes {settings.STANDARD_ONBOARDING_DAYS} days across "
            f"{len(ONBOARDING_STAGES)} stages. Given the project state below, reply with JSON only: "
            '{"estimatedDaysRemaining": int, "confidence": "low"|"medium"|"high", '
            '"reasoning": str, "riskFactors": [str]}\n\n'
            f"{json.dumps(context)}"
        )

        try:
            response = client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
            result = json.loads(response.choices[0].message.content)
            days = int(result.get("estimatedDaysRemaining", 0))
        except Exception as e:
            logger.error(f"AI estimate failed for {customer.id}: {e}")
            return {"success": False, "error": str(e)}

        estimated = (now or datetime.now(timezone.utc)) + timedelta(days=days)
        return {
            "success": True,
            "estimatedDaysRemaining": days,
            "estimatedDate": estimated.isoformat(),
            "confidence": result.get("confidence", "low"),
            "reasoning": result.get("reasoning", ""),
            "riskFactors": result.get("riskFactors", []),
        }


# Singleton instance
estimate_service = EstimateService()
