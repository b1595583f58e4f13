from smartspend.main import app
import os
import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    uvicorn.run("smartspend.main:app", host="0.0.0.0", port=port, reload=True)
