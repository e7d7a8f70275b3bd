"""Bridge between GitHub pull requests and AWS CodeBuild.

This package implements the pull-request build bridge, providing:
- Webhook signature authentication
- Build start orchestration with commit status bookkeeping
- Build status polling and commit status reconciliation
- Lambda entry points wiring the components together
"""
