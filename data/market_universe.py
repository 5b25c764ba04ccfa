"""
Startup universe of tracked assets, six per category.
Prices are synthetic reference levels; the store perturbs them on every tick.
"""

INITIAL_MARKETS = {
    "indices": [
        {"id": "dax", "name": "DAX 40", "symbol": "DAX", "icon": "🇩🇪", "price": 18520.45, "change": 0.68, "rsi": 65, "macd": "+42.3"},
        {"id": "cac", "name": "CAC 40", "symbol": "CAC", "icon": "🇫🇷", "price": 7854.12, "change": 0.45, "rsi": 62, "macd": "+38.1"},
        {"id": "ftse", "name": "FTSE 100", "symbol": "FTSE", "icon": "🇬🇧", "price": 8124.88, "change": 0.52, "rsi": 58, "macd": "+25.4"},
        {"id": "sp500", "name": "S&P 500", "symbol": "SPX", "icon": "🇺🇸", "price": 5928.15, "change": 1.12, "rsi": 68, "macd": "+58.2"},
        {"id": "ndx", "name": "Nasdaq 100", "symbol": "NDX", "icon": "🇺🇸", "price": 20854.30, "change": 1.35, "rsi": 71, "macd": "+72.1"},
        {"id": "nikkei", "name": "Nikkei 225", "symbol": "NI225", "icon": "🇯🇵", "price": 33255.00, "change": 0.28, "rsi": 55, "macd": "+18.5"},
    ],
    "forex": [
        {"id": "eurusd", "name": "EUR / USD", "symbol": "EURUSD", "icon": "🇪🇺🇺🇸", "price": 1.0522, "change": -0.15, "rsi": 48, "macd": "-12.3"},
        {"id": "gbpusd", "name": "GBP / USD", "symbol": "GBPUSD", "icon": "🇬🇧🇺🇸", "price": 1.2754, "change": 0.25, "rsi": 52, "macd": "+8.7"},
        {"id": "usdjpy", "name": "USD / JPY", "symbol": "USDJPY", "icon": "🇺🇸🇯🇵", "price": 149.52, "change": 0.45, "rsi": 61, "macd": "+22.1"},
        {"id": "eurgbp", "name": "EUR / GBP", "symbol": "EURGBP", "icon": "🇪🇺🇬🇧", "price": 0.8256, "change": -0.32, "rsi": 45, "macd": "-15.8"},
        {"id": "audusd", "name": "AUD / USD", "symbol": "AUDUSD", "icon": "🇦🇺🇺🇸", "price": 0.6582, "change": 0.18, "rsi": 54, "macd": "+5.2"},
        {"id": "usdcad", "name": "USD / CAD", "symbol": "USDCAD", "icon": "🇺🇸🇨🇦", "price": 1.3424, "change": 0.28, "rsi": 57, "macd": "+14.6"},
    ],
    "crypto": [
        {"id": "btc", "name": "Bitcoin", "symbol": "BTC", "icon": "₿", "price": 96854.20, "change": 2.45, "rsi": 72, "macd": "+125.3"},
        {"id": "eth", "name": "Ethereum", "symbol": "ETH", "icon": "Ξ", "price": 3582.45, "change": 1.85, "rsi": 68, "macd": "+84.2"},
        {"id": "sol", "name": "Solana", "symbol": "SOL", "icon": "◎", "price": 205.12, "change": 3.12, "rsi": 75, "macd": "+62.1"},
        {"id": "ada", "name": "Cardano", "symbol": "ADA", "icon": "₳", "price": 0.9824, "change": 1.45, "rsi": 64, "macd": "+38.5"},
        {"id": "xrp", "name": "XRP", "symbol": "XRP", "icon": "✕", "price": 2.1855, "change": 0.95, "rsi": 60, "macd": "+28.3"},
        {"id": "dot", "name": "Polkadot", "symbol": "DOT", "icon": "●", "price": 8.2452, "change": 2.15, "rsi": 69, "macd": "+52.7"},
    ],
    "sectors": [
        {"id": "xlk", "name": "Tech (XLK)", "symbol": "XLK", "icon": "💻", "price": 214.52, "change": 1.28, "rsi": 72, "macd": "+68.2"},
        {"id": "xlf", "name": "Finance (XLF)", "symbol": "XLF", "icon": "💰", "price": 42.36, "change": 0.58, "rsi": 59, "macd": "+12.4"},
        {"id": "xle", "name": "Energy (XLE)", "symbol": "XLE", "icon": "⚡", "price": 84.22, "change": 0.72, "rsi": 62, "macd": "+18.9"},
        {"id": "xlv", "name": "Health Care (XLV)", "symbol": "XLV", "icon": "⚕️", "price": 147.85, "change": 0.32, "rsi": 54, "macd": "+8.5"},
        {"id": "xlc", "name": "Comms (XLC)", "symbol": "XLC", "icon": "📡", "price": 76.18, "change": 0.45, "rsi": 57, "macd": "+14.2"},
        {"id": "xlre", "name": "Real Estate (XLRE)", "symbol": "XLRE", "icon": "🏠", "price": 58.94, "change": -0.28, "rsi": 47, "macd": "-6.3"},
    ],
    "commodities": [
        {"id": "gold", "name": "Gold", "symbol": "GC", "icon": "🟡", "price": 2765.40, "change": 0.85, "rsi": 61, "macd": "+35.2"},
        {"id": "oil", "name": "WTI Crude", "symbol": "CL", "icon": "🛢️", "price": 72.48, "change": 1.15, "rsi": 64, "macd": "+22.8"},
        {"id": "brent", "name": "Brent Crude", "symbol": "BZ", "icon": "🛢️", "price": 76.84, "change": 1.08, "rsi": 63, "macd": "+21.5"},
        {"id": "natgas", "name": "Natural Gas", "symbol": "NG", "icon": "💨", "price": 2.954, "change": -2.15, "rsi": 38, "macd": "-48.3"},
        {"id": "copper", "name": "Copper", "symbol": "HG", "icon": "🔴", "price": 4.282, "change": 0.95, "rsi": 66, "macd": "+42.1"},
        {"id": "silver", "name": "Silver", "symbol": "SI", "icon": "⚪", "price": 31.52, "change": 0.42, "rsi": 58, "macd": "+16.7"},
    ],
    "bonds": [
        {"id": "us10y", "name": "US 10Y Yield", "symbol": "US10Y", "icon": "📊", "price": 4.252, "change": 0.05, "rsi": 52, "macd": "+3.2"},
        {"id": "us2y", "name": "US 2Y Yield", "symbol": "US2Y", "icon": "📊", "price": 4.384, "change": 0.02, "rsi": 51, "macd": "+1.8"},
        {"id": "bund10y", "name": "German Bund 10Y", "symbol": "BUND10Y", "icon": "📊", "price": 2.185, "change": -0.08, "rsi": 48, "macd": "-4.5"},
        {"id": "oat10y", "name": "French OAT 10Y", "symbol": "OAT10Y", "icon": "📊", "price": 2.954, "change": -0.06, "rsi": 49, "macd": "-3.2"},
        {"id": "gilt10y", "name": "UK Gilt 10Y", "symbol": "GILT10Y", "icon": "📊", "price": 3.852, "change": 0.01, "rsi": 50, "macd": "+0.5"},
        {"id": "eur_ig", "name": "EUR IG Bonds", "symbol": "EU_IG", "icon": "📊", "price": 3.421, "change": -0.04, "rsi": 47, "macd": "-2.1"},
    ],
}

INITIAL_RECOMMENDATIONS = [
    {"asset": "S&P 500", "action": "BUY", "confidence": 78, "justification": "RSI at 68 with a positive MACD divergence. Support held firmly at 5880."},
    {"asset": "Bitcoin", "action": "BUY", "confidence": 75, "justification": "Institutional accumulation visible below 95k. Momentum indicators are turning bullish."},
    {"asset": "EUR / USD", "action": "SELL", "confidence": 72, "justification": "Bearish divergence on the H4 timeframe. Headwinds persist for the euro area."},
    {"asset": "Gold", "action": "HOLD", "confidence": 65, "justification": "Ranging between 2745-2785. Waiting for a break of the descending triangle."},
]

INITIAL_SUMMARY = "Ready for the FinTwit scan..."
