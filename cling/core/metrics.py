from prometheus_client import Counter


otp_requests_total = Counter(
    "cling_otp_requests_total",
    "Total OTP codes issued",
)

otp_rate_limited_total = Counter(
    "cling_otp_rate_limited_total",
    "Total OTP requests rejected by the resend cooldown",
)

otp_verifications_total = Counter(
    "cling_otp_verifications_total",
    "Total OTP verification attempts by outcome",
    ["outcome"],
)

reminders_created_total = Counter(
    "cling_reminders_created_total",
    "Total reminders created via API",
)

reminders_reconciled_total = Counter(
    "cling_reminders_reconciled_total",
    "Total reminders persisted as overdue by reconciliation",
)

image_generation_requests_total = Counter(
    "cling_image_generation_requests_total",
    "Total image generation proxy requests by provider and outcome",
    ["provider", "outcome"],
)
