import uvicorn
import os

if __name__ == "__main__":
    os.makedirs("data", exist_ok=True)

    print("Starting War Games API Server...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "wargames.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
