"""User-facing text for quota rejections."""

from mailwise.schemas.usage import Plan, UsageConsumptionResult

RESET_NOTICE = (
    "Usage resets on the 1st day of each month. "
    "Purchasing a subscription again immediately resets your usage counters."
)


def build_limit_message(plan: Plan, result: UsageConsumptionResult) -> str:
    """Describe why *result* was rejected and when usage comes back."""
    tier = result.tier.value
    if result.limit is not None:
        message = (
            f"You have reached the {tier} model limit ({result.limit} per month) "
            f"for your {plan.value} plan."
        )
    else:
        message = (
            f"You have reached the current usage limit for {tier} models "
            f"on your {plan.value} plan."
        )

    if result.remaining is not None and result.remaining > 0:
        return f"{message} You have {result.remaining} remaining requests this month."
    return f"{message} {RESET_NOTICE}"
