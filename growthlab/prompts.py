"""Prompt assembly for experiment generation.

The schema contract below is sent verbatim on every call: the recovery layer
cannot negotiate with the model, it can only parse what comes back.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from growthlab.models.generation import TrafficContext
    from growthlab.models.goal import GoalProfile

EXPERIMENTS_PER_BATCH = 5

SYSTEM_INSTRUCTION = (
    "Você é um Gestor de Tráfego Sênior e Estrategista de Growth com 10 anos de "
    "experiência em contas de 7 dígitos no Meta Ads, Google Ads e TikTok Ads. "
    "Sua missão é analisar um diagnóstico de tráfego e gerar "
    f"{EXPERIMENTS_PER_BATCH} experimentos com alta probabilidade de sucesso para "
    "aumentar o ROAS e reduzir o CPA. Responda OBRIGATORIAMENTE em Português do "
    "Brasil (pt-BR). Nunca responda em inglês e nunca misture idiomas."
)

METHODOLOGY_RULES = """\
Diretrizes de Especialista:

0) Antes de sugerir qualquer coisa, analise o objetivo (goal) e a métrica alvo. Entenda o que significa "sucesso" para esse objetivo e qual métrica deve ser otimizada.
1) Foco em Funil: identifique se o problema está no TOFU (Atração/CTR), MOFU (Engajamento/Retenção) ou BOFU (Conversão/Checkout).
2) Linha de Corte (cutoff): cada experimento precisa de uma linha de corte financeira clara, por exemplo: "Pausar se o CPL passar de R$ X após 500 impressões".
3) Hipóteses Atômicas: nunca sugira apenas "melhorar o criativo". Sugira hipóteses concretas, como "Testar um gancho de curiosidade nos 3 primeiros segundos contra um gancho de dor direta".
4) Priorização ICE:
   - Impacto: quanto isso move o lucro?
   - Confiança: você já viu isso funcionar antes?
   - Facilidade: dá para subir esse teste em 15 minutos?

Comportamento para Objetivos de Tráfego:
- Se o objetivo envolver tráfego, mídia paga, campanhas, anúncios ou criativos, deduza as métricas relevantes (CPA, CTR, ROAS, CPC, retenção de vídeo) a partir do contexto, mesmo sem números exatos do usuário.
- Deixe essas métricas explícitas em "metric", em "target" (valor numérico desejado) e no texto da "hypothesis" (ex.: "Elevar o CTR de 1,2% para 2,0%" ou "Reduzir o CPA de R$ 40 para R$ 25").
- Use as métricas do diagnóstico mais recente (CPA, CTR etc.) como base quantitativa para o "target" e a "cutoff_line" de cada hipótese.

Regras de Linguagem:
- Responda sempre em Português do Brasil (pt-BR).
- Use os termos técnicos de tráfego em português do Brasil (CPA, CTR, criativos, funil, campanhas, conjuntos de anúncios, segmentação).
- Nos campos "title" e "hypothesis", escreva em português com esse vocabulário de mídia paga."""

OUTPUT_SCHEMA_CONTRACT = f"""\
Formato de Saída (OBRIGATÓRIO):
- Sua resposta deve ser ÚNICA e EXCLUSIVAMENTE um objeto JSON válido. Nenhum texto, explicação ou caractere antes do primeiro {{ ou depois do último }}.
- A estrutura é exatamente: {{"strategic_vision": "...", "experiments": [...]}}
- "strategic_vision": string em português com a visão estratégica.
- "experiments": array com exatamente {EXPERIMENTS_PER_BATCH} objetos. Cada objeto tem as chaves: "title", "hypothesis", "metric", "target", "cutoff_line", "ice_score".
- "target": número (inteiro ou decimal).
- "ice_score": OBRIGATORIAMENTE número inteiro (ex.: 7 ou 8). Nunca use string ou texto; o sistema rejeita o valor.
- Não inclua markdown, blocos de código (```) nem comentários. Apenas o JSON puro."""

TASK_INSTRUCTION = f"{METHODOLOGY_RULES}\n\n{OUTPUT_SCHEMA_CONTRACT}"

# (field, template) for each line of the quantitative block, in prompt order.
_TRAFFIC_LINES: tuple[tuple[str, str], ...] = (
    ("platform", "Plataforma principal (diagnóstico): {}"),
    ("cpa_current", "CPA atual (diagnóstico): R$ {}"),
    ("cpa_target", "CPA desejado (diagnóstico): R$ {}"),
    ("ctr_current", "CTR atual (diagnóstico): {}%"),
    ("daily_test_budget", "Orçamento diário de teste (diagnóstico): R$ {}"),
)


@dataclass(frozen=True, slots=True)
class PromptBundle:
    """Everything sent to the model for one generation."""

    system: str
    user: str


def traffic_lines(traffic: TrafficContext | None) -> list[str]:
    if traffic is None:
        return []
    lines = []
    for key, template in _TRAFFIC_LINES:
        value = getattr(traffic, key)
        if value:
            lines.append(template.format(value))
    return lines


def build_task_prompt(profile: GoalProfile, traffic: TrafficContext | None = None) -> str:
    """Fixed rules and schema, plus one sentence per piece of context present."""
    prompt = TASK_INSTRUCTION

    if profile.title:
        prompt += f'\n\nA meta em foco é: "{profile.title}".'
    if profile.target_metric:
        prompt += (
            f"\nA métrica alvo principal é: {profile.target_metric}. "
            "Use essa métrica para orientar as hipóteses e os targets numéricos."
        )
    if profile.ad_platform:
        prompt += (
            f"\nA plataforma de tráfego pago em foco é: {profile.ad_platform}. "
            "Adapte os experimentos especificamente para essa plataforma."
        )

    lines = traffic_lines(traffic)
    if lines:
        prompt += "\n\nDados quantitativos do diagnóstico mais recente:\n" + "\n".join(lines)

    return prompt


def build_user_message(structured_analysis: Any) -> str:
    body = json.dumps(structured_analysis, indent=2, ensure_ascii=False, default=str)
    return f"Contexto estruturado:\n{body}"


def build_prompt(
    profile: GoalProfile,
    structured_analysis: Any,
    traffic: TrafficContext | None = None,
) -> PromptBundle:
    return PromptBundle(
        system=f"{SYSTEM_INSTRUCTION}\n\n{build_task_prompt(profile, traffic)}",
        user=build_user_message(structured_analysis),
    )
