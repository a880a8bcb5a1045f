import datetime as dt
from enum import StrEnum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from prospect_radar.models.base import MongoBaseModel, UTCDateTime, utc_now


class ContactStatus(StrEnum):
    NOVO = "NOVO"
    EM_PROSPECCAO = "EM_PROSPECCAO"
    CONTATADO = "CONTATADO"
    REUNIAO_MARCADA = "REUNIAO_MARCADA"
    CONVERTIDO = "CONVERTIDO"
    PERDIDO = "PERDIDO"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES = (
    ContactStatus.NOVO,
    ContactStatus.EM_PROSPECCAO,
    ContactStatus.CONTATADO,
    ContactStatus.REUNIAO_MARCADA,
)
TERMINAL_STATUSES = frozenset({ContactStatus.CONVERTIDO, ContactStatus.PERDIDO})


class Temperature(StrEnum):
    HOT = "QUENTE"
    WARM = "MORNO"
    COLD = "FRIO"


class InteractionType(StrEnum):
    LIGACAO = "LIGACAO"
    WHATSAPP = "WHATSAPP"
    EMAIL = "EMAIL"
    REUNIAO = "REUNIAO"
    OUTRO = "OUTRO"
    VISITA = "VISITA"
    PROPOSTA_ENVIADA = "PROPOSTA_ENVIADA"
    FOLLOW_UP = "FOLLOW_UP"
    NEGOCIACAO = "NEGOCIACAO"
    POS_VENDA = "POS_VENDA"
    SUPORTE = "SUPORTE"
    INDICACAO = "INDICACAO"
    APRESENTACAO = "APRESENTACAO"
    ORCAMENTO = "ORCAMENTO"


class InteractionOutcome(StrEnum):
    SEM_RESPOSTA = "SEM_RESPOSTA"
    RESPONDEU = "RESPONDEU"
    REUNIAO_MARCADA = "REUNIAO_MARCADA"
    NAO_INTERESSADO = "NAO_INTERESSADO"
    CONVERTIDO = "CONVERTIDO"
    SEGUIR_TENTANDO = "SEGUIR_TENTANDO"
    PROPOSTA_ACEITA = "PROPOSTA_ACEITA"
    AGUARDANDO_RETORNO = "AGUARDANDO_RETORNO"
    EM_NEGOCIACAO = "EM_NEGOCIACAO"
    INDICOU_TERCEIRO = "INDICOU_TERCEIRO"
    FECHADO_PARCIAL = "FECHADO_PARCIAL"


class NextActionType(StrEnum):
    LIGAR = "LIGAR"
    ENVIAR_WHATSAPP = "ENVIAR_WHATSAPP"
    ENVIAR_EMAIL = "ENVIAR_EMAIL"
    REUNIAO = "REUNIAO"
    VISITA = "VISITA"
    FOLLOW_UP = "FOLLOW_UP"
    ENVIAR_PROPOSTA = "ENVIAR_PROPOSTA"
    OUTRO = "OUTRO"


class Contact(MongoBaseModel):
    """A prospect record as stored in the `contacts` collection."""
    organization_id: str
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: ContactStatus = ContactStatus.NOVO
    temperatura: Optional[Temperature] = None
    origem: Optional[str] = None
    proxima_acao_tipo: Optional[NextActionType] = None
    proxima_acao_data: Optional[UTCDateTime] = None
    valor_estimado: Optional[float] = None
    assigned_to_user_id: Optional[str] = None
    created_by_user_id: Optional[str] = None


class Interaction(MongoBaseModel):
    """A logged touchpoint as stored in the `interactions` collection."""
    organization_id: str
    contact_id: str
    type: InteractionType
    outcome: InteractionOutcome
    note: Optional[str] = None
    happened_at: UTCDateTime = Field(default_factory=utc_now)
    created_by_user_id: Optional[str] = None


class InteractionSummary(BaseModel):
    """The slice of an interaction the engine looks at."""
    model_config = ConfigDict(frozen=True)

    type: InteractionType
    outcome: InteractionOutcome
    happened_at: UTCDateTime
    created_at: UTCDateTime


class ContactSnapshot(BaseModel):
    """
    Immutable engine input: a contact plus its latest interactions.

    `interactions` must be ordered most-recent-first by `happened_at`;
    the engine reads `interactions[0]` as the latest touchpoint.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    status: ContactStatus
    temperatura: Optional[Temperature] = None
    origem: Optional[str] = None
    proxima_acao_tipo: Optional[NextActionType] = None
    proxima_acao_data: Optional[UTCDateTime] = None
    valor_estimado: Optional[float] = None
    assigned_to_user_id: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime
    interactions: Tuple[InteractionSummary, ...] = ()

    @property
    def last_interaction(self) -> Optional[InteractionSummary]:
        return self.interactions[0] if self.interactions else None

    @property
    def last_activity_at(self) -> dt.datetime:
        """Most recent of `updated_at` and the latest interaction."""
        last = self.last_interaction
        if last is not None and last.happened_at > self.updated_at:
            return last.happened_at
        return self.updated_at
