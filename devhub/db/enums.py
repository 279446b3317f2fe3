# db/enums.py
import enum

class SubmissionStatus(enum.StrEnum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    REQUIRES_CHANGES = "requires_changes"

    @classmethod
    def decisions(cls) -> frozenset["SubmissionStatus"]:
        return frozenset({cls.APPROVED, cls.REJECTED, cls.REQUIRES_CHANGES})

class Category(enum.StrEnum):
    DEFI = "DeFi"
    GAMING = "Gaming"
    AI = "AI"
    INFRASTRUCTURE = "Infrastructure"
    CONSUMER = "Consumer"
    NFT = "NFT"
    STABLECOINS = "Stablecoins"

class HubEvent(enum.StrEnum):
    CRAZY_CONTRACT = "Mission: 1 Crazy Contract"
    SMART_WALLET = "Mission: 2 Smart Wallet"
    DEFI_INTEGRATION = "Mission: 3 DeFi Integration"
    NFT_MARKETPLACE = "Mission: 4 NFT Marketplace"
    HACKATHON_2023 = "Hackathon 2023"
    HACKATHON_2024 = "Hackathon 2024"

class TransactionType(enum.StrEnum):
    TRANSFER = "transfer"
    SWAP = "swap"
    MINT = "mint"
    BURN = "burn"
    STAKE = "stake"

class SortDirection(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"

class SubmissionSortField(enum.StrEnum):
    SUBMITTED_AT = "submitted_at"
    PROJECT_NAME = "project_name"
    STATUS = "status"
    REVIEWED_AT = "reviewed_at"
    CREATED_AT = "created_at"

class ProjectSortField(enum.StrEnum):
    CREATED_AT = "created_at"
    NAME = "name"
    LIKES = "likes"
    COMMENTS = "comments"
    EVENT = "event"
