# app/utils/br.py
import re

def only_digits(s: str | None) -> str:
    return re.sub(r"\D+", "", s or "")

def is_valid_cpf(value: str | None) -> bool:
    cpf = only_digits(value)
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False
    for n in (9, 10):
        total = sum(int(cpf[i]) * (n + 1 - i) for i in range(n))
        dv = (total * 10) % 11
        if dv == 10:
            dv = 0
        if dv != int(cpf[n]):
            return False
    return True

def normalize_cpf_cnpj(value: str | None) -> str | None:
    digits = only_digits(value)
    if len(digits) in (11, 14):
        return digits
    return None  # deixa None se vier inválido/ausente

def normalize_mobile_phone(value: str | None) -> str | None:
    # Asaas aceita strings como "11987654321" (DDI opcional); vamos enviar só dígitos
    digits = only_digits(value)
    if len(digits) in (12, 13) and digits.startswith("55"):
        digits = digits[2:]
    return digits or None

def is_valid_phone(value: str | None) -> bool:
    digits = normalize_mobile_phone(value) or ""
    if len(digits) not in (10, 11):
        return False
    # DDD não começa com 0
    return digits[0] != "0"

def normalize_cep(value: str | None) -> str | None:
    digits = only_digits(value)
    return digits if len(digits) == 8 else None
