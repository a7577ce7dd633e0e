"""
Configurações globais e valores padrão do motor de estoque de implantes.

Os rótulos de colunas e marcadores abaixo vêm das exportações do sistema de
gestão da clínica (em coreano) e precisam ser mantidos literalmente para
compatibilidade com as planilhas existentes.
"""

import os
from dataclasses import dataclass
from pathlib import Path


# Diretório padrão dos logs (pode ser sobrescrito via variável de ambiente)
LOG_DIR = os.environ.get(
    "IMPLANTES_LOG_DIR",
    str(Path(__file__).parent / "logs"),
)

# Aba do arquivo de registros cirúrgicos
SHEET_CIRURGIAS = "수술기록지"

# Colunas da planilha de registros cirúrgicos
COL_DATA = "날짜"
COL_PACIENTE = "환자정보"
COL_DENTE = "치아번호"
COL_QUANTIDADE = "갯수"
COL_REGISTRO = "수술기록"
COL_CLASSIFICACAO = "구분"
COL_FABRICANTE = "제조사"
COL_MARCA = "브랜드"
COL_TAMANHO = "규격(SIZE)"
COL_QUALIDADE_OSSEA = "골질"
COL_FIXACAO_INICIAL = "초기고정"
COL_NAO_USAR = "사용안함"

# Ordem em que as colunas de descrição são consultadas
COLUNAS_DESCRICAO = ("수술기록", "수술내용", "픽스쳐", "규격", "품명")

# Ordem canônica das colunas ao exportar registros classificados
COLUNAS_CIRURGIA = (
    COL_DATA, COL_PACIENTE, COL_DENTE, COL_QUANTIDADE, COL_REGISTRO,
    COL_CLASSIFICACAO, COL_FABRICANTE, COL_MARCA, COL_TAMANHO,
    COL_QUALIDADE_OSSEA, COL_FIXACAO_INICIAL,
)

# Marcadores textuais
MARCADOR_TOTAL = "합계"
MARCADOR_SEGURO = "보험임플란트"
MARCADOR_FALHA = "수술중FAIL_"
MARCADOR_TROCA = "수술중교환"
MARCADOR_GBR = "[GBR Only]"
CATEGORIA_SEGURO = "보험청구"


@dataclass
class DefaultConfig:
    """Valores padrão dos cálculos de reposição."""
    dias_por_mes: float = 30.44       # média gregoriana
    comprimento_minimo: float = 5.0   # mm; abaixo disso o valor é diâmetro
    razao_estoque_baixo: float = 0.3  # fração do estoque recomendado
    fator_pico_diario: int = 2        # multiplicador do pico diário


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
