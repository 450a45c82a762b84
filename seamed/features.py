"""Feature availability by subscription tier."""

from typing import Dict

from .domain import SubscriptionTier

FEATURES = (
    'scanning',
    'expirationReminders',
    'vendorSuggestions',
    'csvExport',
    'pdfExport',
    'multiVessel',
    'whiteLabelBranding',
    'advancedAlerts',
    'regulatoryTemplates',
    'syncToCloud',
)

_FREE = {
    'scanning': True,
    'expirationReminders': True,   # 30-day reminders only
    'vendorSuggestions': False,
    'csvExport': True,
    'pdfExport': False,
    'multiVessel': False,
    'whiteLabelBranding': False,
    'advancedAlerts': False,
    'regulatoryTemplates': True,
    'syncToCloud': False,
}

_PRO = dict(_FREE, vendorSuggestions=True, pdfExport=True,
            advancedAlerts=True, syncToCloud=True)

_FLEET = dict(_PRO, multiVessel=True, whiteLabelBranding=True)

TIER_FEATURES: Dict[SubscriptionTier, Dict[str, bool]] = {
    SubscriptionTier.FREE: _FREE,
    SubscriptionTier.PRO: _PRO,
    SubscriptionTier.FLEET: _FLEET,
}


def get_features(tier: SubscriptionTier) -> Dict[str, bool]:
    """Feature flags for ``tier``, in ``FEATURES`` order."""
    flags = TIER_FEATURES[tier]
    return {feature: flags[feature] for feature in FEATURES}
