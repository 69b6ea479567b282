"""Stock price relay: SSE streaming of upstream prices behind a shared cache."""
