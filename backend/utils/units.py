"""Unit conversion helpers for glucose readings."""

MG_DL_PER_G_L = 100.0
MG_DL_PER_MMOL_L = 18.016


def g_l_to_mg_dl(g_l: float) -> float:
    return g_l * MG_DL_PER_G_L


def mg_dl_to_g_l(mg_dl: float) -> float:
    return mg_dl / MG_DL_PER_G_L


def g_l_to_mmol_l(g_l: float) -> float:
    return g_l_to_mg_dl(g_l) / MG_DL_PER_MMOL_L


def mmol_l_to_g_l(mmol_l: float) -> float:
    return mg_dl_to_g_l(mmol_l * MG_DL_PER_MMOL_L)
