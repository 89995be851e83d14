from .gallery import DEFAULT_TAGS, PAGE_SIZE, Card, GalleryView, Page, filter_works, paginate, tag_pool
from .profile import CreatorProfileView, ProfileView, WorkDraft
from .report import REPORT_CLOSE_DELAY_S, ReportForm
from .requests import RequestGeneration
from .save import SaveToggle
from .work_detail import WorkDetailView

__all__ = [
    "Card",
    "CreatorProfileView",
    "DEFAULT_TAGS",
    "GalleryView",
    "PAGE_SIZE",
    "Page",
    "ProfileView",
    "REPORT_CLOSE_DELAY_S",
    "ReportForm",
    "RequestGeneration",
    "SaveToggle",
    "WorkDetailView",
    "WorkDraft",
    "filter_works",
    "paginate",
    "tag_pool",
]
