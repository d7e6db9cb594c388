"""Plain-text share card for a spot."""

HASHTAGS = "#WorkHaven #RemoteWork #Productivity"

_NOISE_EMOJI = {"Low": "🔇", "Medium": "🔉", "High": "🔊"}


def share_text(spot) -> str:
    wifi = int(spot.wifi_rating or 0)
    noise = spot.noise_rating or "Low"
    lines = [
        "🌟 Found an amazing work spot!",
        "",
        f"📍 {spot.name or 'Unknown Spot'}",
        f"🏢 {spot.address or 'Unknown Address'}",
        "",
        f"📶 WiFi: {'⭐' * wifi} ({wifi}/5)",
        f"{_NOISE_EMOJI.get(noise, '🔊')} Noise: {noise}",
        f"{'🔌' if spot.outlets else '❌'} Outlets: {'Yes' if spot.outlets else 'No'}",
    ]
    if spot.tips:
        lines.extend(["", f"💡 Pro Tip: {spot.tips}"])
    lines.extend(["", HASHTAGS])
    return "\n".join(lines)
