import uvicorn
import os

if __name__ == "__main__":
    host = os.environ.get("CLD_HOST", "0.0.0.0")
    port = int(os.environ.get("CLD_PORT", "8000"))

    print("Starting CLD Engine API Server...")
    print(f"Docs available at: http://localhost:{port}/docs")

    uvicorn.run(
        "cldengine.api.server:app",
        host=host,
        port=port,
        reload=True
    )
