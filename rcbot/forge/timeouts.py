from __future__ import annotations

# GitHub REST API calls
GITHUB_TIMEOUT_SECONDS = 30.0

# Slack incoming webhook
SLACK_TIMEOUT_SECONDS = 15.0
