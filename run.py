import uvicorn

from nads.config import load_settings

if __name__ == "__main__":
    settings = load_settings()

    print("=" * 50)
    print("🛡️  NADS - Network Anomaly Detection System")
    print("=" * 50)
    print("\n⚠️  Note: traffic is simulated, no packet capture is performed.")
    print(f"   - Tick interval: {settings.tick_interval}s")
    print(f"   - Anomaly rate: {settings.anomaly_rate:.0%}")
    if not settings.gemini_api_key:
        print("   - GEMINI_API_KEY not set: AI insights will return a fallback message\n")

    uvicorn.run(
        "nads.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
