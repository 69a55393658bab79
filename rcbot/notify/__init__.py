"""Chat notifications (Slack incoming webhooks)."""
