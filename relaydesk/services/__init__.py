from relaydesk.services.history_service import HistoryService
from relaydesk.services.ingest_service import MessageIngestPipeline
from relaydesk.services.media_service import MediaStore
from relaydesk.services.reply_scheduler import ReplyScheduler
from relaydesk.services.session_service import ProviderSessionService
from relaydesk.services.tunnel_service import TunnelService

__all__ = [
    "HistoryService",
    "MediaStore",
    "MessageIngestPipeline",
    "ProviderSessionService",
    "ReplyScheduler",
    "TunnelService",
]
