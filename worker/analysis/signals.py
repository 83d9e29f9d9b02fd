"""Typed signal payloads delivered by the collectors.

Each collector fills exactly one of these structures. They are plain
mutable dataclasses; the reconciler works on a deep copy when it needs to
correct or remove a fact, so a collector's original payload is never
touched after it has been handed to the orchestrator.
"""

from dataclasses import dataclass, field

from worker.analysis.outcome import CollectorOutcome, Failed


# Primary crawl


@dataclass
class BasicInfo:
    url: str
    final_url: str
    title: str = ""
    meta_description: str = ""
    favicon: str | None = None
    language: str | None = None
    charset: str | None = None


@dataclass
class HeadingStructure:
    h1: list[str] = field(default_factory=list)
    h2: list[str] = field(default_factory=list)
    h3: list[str] = field(default_factory=list)
    total_h1: int = 0
    total_h2: int = 0
    total_h3: int = 0


@dataclass
class MetaSEO:
    canonical: str | None = None
    robots: str | None = None
    og_tags: dict[str, str] = field(default_factory=dict)
    twitter_tags: dict[str, str] = field(default_factory=dict)
    viewport: str | None = None


@dataclass
class ContentStats:
    word_count: int = 0
    paragraph_count: int = 0
    content_to_code_ratio: float = 0.0


@dataclass
class LinkInfo:
    href: str
    text: str = ""
    is_external: bool = False


@dataclass
class LinksAnalysis:
    internal: list[LinkInfo] = field(default_factory=list)
    external: list[LinkInfo] = field(default_factory=list)
    total_internal: int = 0
    total_external: int = 0
    total_broken: int = 0


@dataclass
class ImageInfo:
    src: str
    alt: str | None = None


@dataclass
class ImagesAnalysis:
    images: list[ImageInfo] = field(default_factory=list)
    total: int = 0
    total_missing_alt: int = 0


@dataclass
class TechnicalInfo:
    has_schema_org: bool = False
    schema_types: list[str] = field(default_factory=list)
    has_sitemap: bool = False
    sitemap_url: str | None = None
    sitemap_page_count: int | None = None
    has_robots_txt: bool = False
    robots_txt_content: str | None = None


@dataclass
class TechDetection:
    platform: str | None = None
    confidence: int = 0
    signals: list[str] = field(default_factory=list)


@dataclass
class SecurityInfo:
    is_https: bool = False
    has_mixed_content: bool = False
    mixed_content_urls: list[str] = field(default_factory=list)


@dataclass
class CrawlResult:
    """Facts the crawler extracted from the primary page."""

    basic_info: BasicInfo
    headings: HeadingStructure = field(default_factory=HeadingStructure)
    meta_seo: MetaSEO = field(default_factory=MetaSEO)
    content: ContentStats = field(default_factory=ContentStats)
    links: LinksAnalysis = field(default_factory=LinksAnalysis)
    images: ImagesAnalysis = field(default_factory=ImagesAnalysis)
    technical: TechnicalInfo = field(default_factory=TechnicalInfo)
    tech_detection: TechDetection = field(default_factory=TechDetection)
    security: SecurityInfo = field(default_factory=SecurityInfo)


@dataclass(frozen=True)
class RawMarkup:
    """The raw HTML of the primary page and the URL it resolved to."""

    html: str
    final_url: str

    @property
    def byte_size(self) -> int:
        return len(self.html.encode("utf-8"))

    @property
    def is_empty(self) -> bool:
        return not self.html.strip()


# Third-party collectors


@dataclass
class PageSpeedScores:
    performance: int | None = None
    accessibility: int | None = None
    best_practices: int | None = None
    seo: int | None = None


@dataclass
class CoreWebVitals:
    lcp: float | None = None  # ms
    fid: float | None = None  # ms
    cls: float | None = None
    inp: float | None = None  # ms
    ttfb: float | None = None  # ms


@dataclass
class PageSpeedResult:
    scores: PageSpeedScores = field(default_factory=PageSpeedScores)
    web_vitals: CoreWebVitals = field(default_factory=CoreWebVitals)


@dataclass
class SSLInfo:
    valid: bool = False
    issuer: str | None = None
    expires_at: str | None = None
    days_until_expiry: int | None = None
    protocol: str | None = None


@dataclass
class DomainInfo:
    domain_age_days: int | None = None
    registrar: str | None = None
    created_date: str | None = None


@dataclass
class SecurityHeadersResult:
    grade: str | None = None  # A+ .. F
    headers: dict[str, str | None] = field(default_factory=dict)
    missing_headers: list[str] = field(default_factory=list)


@dataclass
class SafeBrowsingResult:
    safe: bool = True
    threats: list[str] = field(default_factory=list)


@dataclass
class MXRecord:
    exchange: str
    priority: int = 0


@dataclass
class DNSResult:
    a_records: list[str] = field(default_factory=list)
    mx_records: list[MXRecord] = field(default_factory=list)
    txt_records: list[str] = field(default_factory=list)
    has_spf: bool = False
    has_dmarc: bool = False
    nameservers: list[str] = field(default_factory=list)


@dataclass
class HTMLValidationResult:
    errors: int = 0
    warnings: int = 0


# Content analyzer


@dataclass
class AnalyticsTags:
    has_google_analytics: bool = False
    has_gtm: bool = False
    has_meta_pixel: bool = False
    has_hotjar: bool = False
    other_tools: list[str] = field(default_factory=list)

    @property
    def any_detected(self) -> bool:
        return (
            self.has_google_analytics
            or self.has_gtm
            or self.has_meta_pixel
            or self.has_hotjar
            or bool(self.other_tools)
        )


@dataclass
class SocialLink:
    platform: str
    url: str


@dataclass
class CallToAction:
    forms: int = 0
    buttons: int = 0
    has_contact_form: bool = False


@dataclass
class TrustSignals:
    has_privacy_policy: bool = False
    has_terms: bool = False
    has_contact_info: bool = False
    has_phone_number: bool = False
    has_email: bool = False
    has_address: bool = False


@dataclass
class CookieConsent:
    detected: bool = False
    patterns: list[str] = field(default_factory=list)


@dataclass
class PageAnalysis:
    analytics: AnalyticsTags = field(default_factory=AnalyticsTags)
    social_links: list[SocialLink] = field(default_factory=list)
    cta: CallToAction = field(default_factory=CallToAction)
    trust_signals: TrustSignals = field(default_factory=TrustSignals)
    fonts: list[str] = field(default_factory=list)
    css_frameworks: list[str] = field(default_factory=list)
    cookie_consent: CookieConsent = field(default_factory=CookieConsent)


# Online presence


@dataclass
class SearchIndexResult:
    is_indexed: bool = False
    indexed_page_count: int = 0
    has_rich_snippet: bool = False
    brand_mentions: int = 0
    no_data: bool = False  # provider not configured


@dataclass
class SocialProfile:
    platform: str
    url: str
    accessible: bool = False


@dataclass
class SocialPresenceResult:
    profiles: list[SocialProfile] = field(default_factory=list)
    total_verified: int = 0
    total_invalid: int = 0


@dataclass
class WebmasterVerification:
    google: bool = False
    bing: bool = False
    yandex: bool = False


@dataclass
class ArchiveHistory:
    first_snapshot: str | None = None  # ISO date
    last_snapshot: str | None = None
    snapshot_count: int = 0
    website_age_years: int | None = None


@dataclass
class StructuredDataCompleteness:
    schema_types: list[str] = field(default_factory=list)
    schema_complete: bool = False
    og_complete: bool = False
    twitter_card_complete: bool = False


@dataclass
class OnlinePresenceResult:
    search_index: SearchIndexResult = field(default_factory=SearchIndexResult)
    social_presence: SocialPresenceResult = field(default_factory=SocialPresenceResult)
    webmaster_tags: WebmasterVerification = field(default_factory=WebmasterVerification)
    archive_history: ArchiveHistory = field(default_factory=ArchiveHistory)
    structured_data: StructuredDataCompleteness = field(
        default_factory=StructuredDataCompleteness
    )


# Identity synthesis ("DNA")


@dataclass
class DNAIdentity:
    site_type: str = "unknown"
    site_type_confidence: int = 0  # 0-100
    industry: str | None = None
    brand_name: str = ""
    signals: list[str] = field(default_factory=list)


@dataclass
class DNATargetMarket:
    audience: str = "unknown"  # B2B | B2C | both | unknown
    market_scope: str = "unknown"  # local | national | global | unknown
    languages: list[str] = field(default_factory=list)
    primary_language: str | None = None


@dataclass
class DNAMaturity:
    level: str = "newborn"  # newborn | young | growing | mature | veteran
    score: int = 0
    signals: list[str] = field(default_factory=list)


@dataclass
class DNAScale:
    level: str = "single-page"  # single-page | small | medium | large | enterprise
    estimated_pages: int | None = None
    signals: list[str] = field(default_factory=list)


@dataclass
class DNARevenueModel:
    primary: str = "unknown"
    signals: list[str] = field(default_factory=list)


@dataclass
class DNAContact:
    methods: list[str] = field(default_factory=list)
    social_platforms: list[str] = field(default_factory=list)
    has_physical_address: bool = False


@dataclass
class DNATechStack:
    platform: str | None = None
    js_framework: str | None = None
    hosting: str | None = None
    email_provider: str | None = None
    cdn_provider: str | None = None


@dataclass
class DNAContentStructure:
    has_blog: bool = False
    has_auth: bool = False
    has_search: bool = False
    has_newsletter: bool = False
    has_ecommerce: bool = False


@dataclass
class DNAAISynthesis:
    summary: str | None = None
    sophistication_score: int | None = None
    growth_stage: str | None = None


@dataclass
class WebsiteDNA:
    identity: DNAIdentity = field(default_factory=DNAIdentity)
    target_market: DNATargetMarket = field(default_factory=DNATargetMarket)
    maturity: DNAMaturity = field(default_factory=DNAMaturity)
    scale: DNAScale = field(default_factory=DNAScale)
    revenue_model: DNARevenueModel = field(default_factory=DNARevenueModel)
    contact: DNAContact = field(default_factory=DNAContact)
    tech_stack: DNATechStack = field(default_factory=DNATechStack)
    content_structure: DNAContentStructure = field(default_factory=DNAContentStructure)
    ai_synthesis: DNAAISynthesis = field(default_factory=DNAAISynthesis)


_NOT_COLLECTED = Failed(reason="not collected")


@dataclass(frozen=True)
class CollectedFacts:
    """Everything the collectors and derivations produced for one scan.

    The crawl is always present (a failed crawl aborts the scan); every
    other slot is an independent ``CollectorOutcome``.
    """

    crawl: CrawlResult
    page_speed: CollectorOutcome[PageSpeedResult] = _NOT_COLLECTED
    ssl: CollectorOutcome[SSLInfo] = _NOT_COLLECTED
    domain_info: CollectorOutcome[DomainInfo] = _NOT_COLLECTED
    security_headers: CollectorOutcome[SecurityHeadersResult] = _NOT_COLLECTED
    safe_browsing: CollectorOutcome[SafeBrowsingResult] = _NOT_COLLECTED
    dns: CollectorOutcome[DNSResult] = _NOT_COLLECTED
    html_validation: CollectorOutcome[HTMLValidationResult] = _NOT_COLLECTED
    page_analysis: CollectorOutcome[PageAnalysis] = _NOT_COLLECTED
    online_presence: CollectorOutcome[OnlinePresenceResult] = _NOT_COLLECTED
    dna: CollectorOutcome[WebsiteDNA] = _NOT_COLLECTED

    OUTCOME_SLOTS = (
        "page_speed",
        "ssl",
        "domain_info",
        "security_headers",
        "safe_browsing",
        "dns",
        "html_validation",
        "page_analysis",
        "online_presence",
        "dna",
    )

    def failures(self) -> dict[str, str]:
        """Map of slot name to failure reason for every failed slot."""
        failed: dict[str, str] = {}
        for slot in self.OUTCOME_SLOTS:
            outcome = getattr(self, slot)
            if isinstance(outcome, Failed):
                failed[slot] = outcome.reason
        return failed
