"""Catalog loader: parses the static YAML catalogs into frozen models.

Reads one file per catalog from a config directory:
buildings.yaml, enemies.yaml, synergies.yaml, prestige.yaml, drops.yaml.
Entries whose attributes are not a mapping are skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from rampage.models.building import (
    BuildingDefinition,
    BuildingRole,
    BuildingTier,
    SpecialEffectType,
)
from rampage.models.enemy import EnemyTier, FinalBoss, FinalBossDrop
from rampage.models.upgrades import (
    DropKind,
    LuckyDropDefinition,
    OtherBuildingsRule,
    PrestigeEffectType,
    PrestigeMilestoneTier,
    PrestigeUpgradeDefinition,
    SynergyDefinition,
    SynergyEffectType,
    SynergyRequirement,
)

log = logging.getLogger(__name__)

CATALOG_FILES = ("buildings", "enemies", "synergies", "prestige", "drops")


@dataclass
class CatalogData:
    """Raw parsed catalogs, ready to be indexed by :class:`Catalog`."""

    buildings: list[BuildingDefinition] = field(default_factory=list)
    enemy_tiers: list[EnemyTier] = field(default_factory=list)
    final_bosses: list[FinalBoss] = field(default_factory=list)
    synergies: list[SynergyDefinition] = field(default_factory=list)
    prestige_upgrades: list[PrestigeUpgradeDefinition] = field(default_factory=list)
    milestones: list[PrestigeMilestoneTier] = field(default_factory=list)
    ranks: list[str] = field(default_factory=list)
    drops: list[LuckyDropDefinition] = field(default_factory=list)


# ===================================================================
# Section parsers
# ===================================================================

def _parse_buildings(section: dict) -> list[BuildingDefinition]:
    buildings: list[BuildingDefinition] = []
    for bid, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        tiers = []
        for index, tier in enumerate(attrs.get("tiers", []), start=1):
            effect = tier.get("special_effect")
            tiers.append(BuildingTier(
                tier=int(tier.get("tier", index)),
                name=tier.get("name", bid),
                base_production=float(tier.get("base_production", 0)),
                base_cost=float(tier.get("base_cost", 0)),
                unlock_wave=int(tier.get("unlock_wave", 1)),
                special_effect=SpecialEffectType(effect) if effect else None,
            ))
        if not tiers:
            log.warning("Building %s has no tiers, skipped", bid)
            continue
        buildings.append(BuildingDefinition(
            id=bid,
            role=BuildingRole(attrs.get("role", "production")),
            cost_multiplier=float(attrs.get("cost_multiplier", 1.5)),
            max_builders=int(attrs.get("max_builders", 50)),
            tiers=tuple(tiers),
            no_workers=bool(attrs.get("no_workers", False)),
            description=attrs.get("description", ""),
        ))
    return buildings


def _parse_enemy_tiers(section: dict) -> list[EnemyTier]:
    tiers: list[EnemyTier] = []
    for tid, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        max_wave = attrs.get("max_wave")
        tiers.append(EnemyTier(
            id=tid,
            name=attrs.get("name", tid),
            min_wave=int(attrs.get("min_wave", 1)),
            max_wave=int(max_wave) if max_wave is not None else None,
            base_health=float(attrs.get("base_health", 100)),
            health_multiplier=float(attrs.get("health_multiplier", 1.0)),
            base_reward=float(attrs.get("base_reward", 0)),
            reward_multiplier=float(attrs.get("reward_multiplier", 1.0)),
        ))
    return sorted(tiers, key=lambda t: t.min_wave)


def _parse_final_bosses(section: dict) -> list[FinalBoss]:
    bosses: list[FinalBoss] = []
    for wave, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        drop_raw = attrs.get("drop")
        drop = None
        if isinstance(drop_raw, dict):
            drop = FinalBossDrop(
                kind=DropKind(drop_raw.get("kind", "boost")),
                amount=int(drop_raw.get("amount", 0)),
                multiplier=float(drop_raw.get("multiplier", 1.0)),
                duration_ms=float(drop_raw.get("duration_ms", 0)),
            )
        bosses.append(FinalBoss(
            wave=int(wave),
            id=attrs.get("id", f"final_boss_{wave}"),
            name=attrs.get("name", f"Final Boss {wave}"),
            health=float(attrs.get("health", 1)),
            reward=float(attrs.get("reward", 0)),
            timer_seconds=float(attrs.get("timer_seconds", 60)),
            drop=drop,
        ))
    return sorted(bosses, key=lambda b: b.wave)


def _parse_synergies(section: dict) -> list[SynergyDefinition]:
    synergies: list[SynergyDefinition] = []
    for sid, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        effect = attrs.get("effect", {})
        other = attrs.get("other_buildings")
        synergies.append(SynergyDefinition(
            id=sid,
            name=attrs.get("name", sid),
            requirements=tuple(
                SynergyRequirement(building_id=b, min_workers=int(n))
                for b, n in (attrs.get("requirements") or {}).items()
            ),
            effect_type=SynergyEffectType(effect.get("type")),
            value=float(effect.get("value", 0)),
            other_buildings=OtherBuildingsRule(
                count=int(other.get("count", 0)),
                min_workers=int(other.get("min_workers", 0)),
            ) if isinstance(other, dict) else None,
            description=attrs.get("description", ""),
        ))
    return synergies


def _parse_prestige(section: dict) -> tuple[list[PrestigeUpgradeDefinition], list[PrestigeMilestoneTier], list[str]]:
    upgrades: list[PrestigeUpgradeDefinition] = []
    for uid, attrs in (section.get("upgrades") or {}).items():
        if not isinstance(attrs, dict):
            continue
        definition = PrestigeUpgradeDefinition(
            id=uid,
            name=attrs.get("name", uid),
            effect_type=PrestigeEffectType(attrs.get("effect_type")),
            base_cost=float(attrs.get("base_cost", 1)),
            cost_multiplier=float(attrs.get("cost_multiplier", 1.5)),
            base_effect=float(attrs.get("base_effect", 1.0)),
            effect_per_level=float(attrs.get("effect_per_level", 0.1)),
            max_level=int(attrs.get("max_level", 10)),
            description=attrs.get("description", ""),
        )
        # Prices must rise and effects must never shrink with level.
        if definition.base_cost < 1 or definition.cost_multiplier <= 1 or definition.effect_per_level < 0:
            log.warning("Skipping prestige upgrade %s: base_cost >= 1, cost_multiplier > 1 "
                        "and effect_per_level >= 0 required", uid)
            continue
        upgrades.append(definition)
    milestones = [
        PrestigeMilestoneTier(
            tier=int(m.get("tier", i)),
            name=m.get("name", f"Tier {i}"),
            prestige_count=int(m.get("prestige_count", 0)),
            multiplier=float(m.get("multiplier", 1.0)),
        )
        for i, m in enumerate(section.get("milestones") or [])
        if isinstance(m, dict)
    ]
    ranks = [str(r) for r in section.get("ranks") or []]
    return upgrades, sorted(milestones, key=lambda m: m.prestige_count), ranks


def _parse_drops(section: dict) -> list[LuckyDropDefinition]:
    drops: list[LuckyDropDefinition] = []
    for did, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        drops.append(LuckyDropDefinition(
            id=did,
            name=attrs.get("name", did),
            kind=DropKind(attrs.get("kind", "scrap")),
            weight=float(attrs.get("weight", 1)),
            min_factor=float(attrs.get("min_factor", 0)),
            max_factor=float(attrs.get("max_factor", 0)),
            multiplier=float(attrs.get("multiplier", 1.0)),
            duration_ms=float(attrs.get("duration_ms", 0)),
            amount=int(attrs.get("amount", 0)),
        ))
    return drops


# ===================================================================
# Public API
# ===================================================================

def parse_catalogs(raw: dict[str, Any]) -> CatalogData:
    """Build :class:`CatalogData` from already-parsed YAML mappings.

    ``raw`` maps catalog names (see ``CATALOG_FILES``) to their content.
    """
    enemies = raw.get("enemies") or {}
    upgrades, milestones, ranks = _parse_prestige(raw.get("prestige") or {})
    return CatalogData(
        buildings=_parse_buildings(raw.get("buildings") or {}),
        enemy_tiers=_parse_enemy_tiers(enemies.get("tiers") or {}),
        final_bosses=_parse_final_bosses(enemies.get("final_bosses") or {}),
        synergies=_parse_synergies(raw.get("synergies") or {}),
        prestige_upgrades=upgrades,
        milestones=milestones,
        ranks=ranks,
        drops=_parse_drops(raw.get("drops") or {}),
    )


def load_catalogs(path: str | Path = "config") -> CatalogData:
    """Load every catalog file from a config directory.

    Raises:
        FileNotFoundError: If a catalog file is missing.
    """
    path = Path(path)
    raw: dict[str, Any] = {}
    for name in CATALOG_FILES:
        cat_file = path / f"{name}.yaml"
        if not cat_file.exists():
            raise FileNotFoundError(f"Catalog file not found: {cat_file}")
        with cat_file.open(encoding="utf-8") as f:
            raw[name] = yaml.safe_load(f) or {}
    data = parse_catalogs(raw)
    log.info(
        "Loaded catalogs from %s: %d buildings, %d enemy tiers, %d final bosses, "
        "%d synergies, %d prestige upgrades, %d drops",
        path, len(data.buildings), len(data.enemy_tiers), len(data.final_bosses),
        len(data.synergies), len(data.prestige_upgrades), len(data.drops),
    )
    return data
