"""
Contest Console

Customer-service orchestration for sweepstakes contests:
- Client/project selection and provisioning
- Contest rules reconciliation, editing and upsert
- Entry data processing with status polling
- Winner selection gating
- Receipt keyword management and receipt batch upload/polling
"""

__version__ = "1.0.0"
__service__ = "contest_console"
