"""
Fund account registry and reference assets.

The registry is validated once at import time; a malformed entry is a
programming error and fails loudly.
"""

from typing import Literal

from pydantic import BaseModel, Field

from fundstat.domain.models import AccountCategory, AssetRef, FundAccount

EURMTL_ISSUER = "GACKTN5DAZGWXRWB2WLM6OPBDHAMT6SJNGLJZPQMEZBUR4JUGBX2UK7V"

EURMTL_ASSET = AssetRef.credit("EURMTL", EURMTL_ISSUER)
XLM_ASSET = AssetRef.native()


class FundAccountSchema(BaseModel):
    """Validation schema for registry entries."""

    id: str = Field(..., pattern=r"^G[A-Z2-7]{55}$")
    name: str = Field(..., min_length=1)
    category: Literal["issuer", "subfond", "mutual", "operational", "other"]
    description: str = Field(..., min_length=1)


_RAW_ACCOUNTS = [
    {
        "id": EURMTL_ISSUER,
        "name": "MAIN ISSUER",
        "category": "issuer",
        "description": "Основной эмитент токенов фонда",
    },
    {
        "id": "GAQ5ERJVI6IW5UVNPEVXUUVMXH3GCDHJ4BJAXMAAKPR5VBWWAUOMABIZ",
        "name": "MABIZ",
        "category": "subfond",
        "description": "Сабфонд малого и среднего бизнеса",
    },
    {
        "id": "GCOJHUKGHI6IATN7AIEK4PSNBPXIAIZ7KB2AWTTUCNIAYVPUB2DMCITY",
        "name": "CITY",
        "category": "subfond",
        "description": "Сабфонд городской инфраструктуры",
    },
    {
        "id": "GAEZHXMFRW2MWLWCXSBNZNUSE6SN3ODZDDOMPFH3JPMJXN4DKBPMDEFI",
        "name": "DEFI",
        "category": "subfond",
        "description": "Сабфонд децентрализованных финансов",
    },
    {
        "id": "GCKCV7T56CAPFUYMCQUYSEUMZRC7GA7CAQ2BOL3RPS4NQXDTRCSULMFB",
        "name": "MFB",
        "category": "mutual",
        "description": "Mutual Fund Business",
    },
    {
        "id": "GD2SNF4QHUJD6VRAXWDA4CDUYENYB23YDFQ74DVC4P5SYR54AAVCUMFA",
        "name": "APART",
        "category": "mutual",
        "description": "Mutual Fund Apartments",
    },
    {
        "id": "GBSCMGJCE4DLQ6TYRNUMXUZZUXGZBM4BXVZUIHBBL5CSRRW2GWEHUADM",
        "name": "ADMIN",
        "category": "operational",
        "description": "Операционный счёт администрирования",
    },
    {
        "id": "GA7I6SGUHQ26ARNCD376WXV5WSE7VJRX6OEFNFCEGRLFGZWQIV73LABR",
        "name": "LABR",
        "category": "other",
        "description": "Трудовые ресурсы (не входит в общий счёт фонда)",
    },
    {
        "id": "GCR5J3NU2NNG2UKDQ5XSZVX7I6TDLB3LEN2HFUR2EPJUMNWCUL62MTLM",
        "name": "MTLM",
        "category": "other",
        "description": "Montelibero Meta (не входит в общий счёт фонда)",
    },
    {
        "id": "GDRLJC6EOKRR3BPKWGJPGI5GUN4GZFZRWQFDG3RJNZJEIBYA7B3EPROG",
        "name": "PROGRAMMERS GUILD",
        "category": "other",
        "description": "Гильдия программистов (не входит в общий счёт фонда)",
    },
]


def _build_registry(raw: list[dict]) -> tuple[FundAccount, ...]:
    accounts = []
    for entry in raw:
        schema = FundAccountSchema.model_validate(entry)
        accounts.append(
            FundAccount(
                id=schema.id,
                name=schema.name,
                category=AccountCategory(schema.category),
                description=schema.description,
            )
        )
    return tuple(accounts)


FUND_ACCOUNTS: tuple[FundAccount, ...] = _build_registry(_RAW_ACCOUNTS)
