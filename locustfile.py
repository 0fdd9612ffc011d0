import random

from locust import HttpUser, task, between


def sample_order():
    total = random.randint(50, 500) * 1000
    return {
        "productos": [{"nombreProducto": "Sabana doble", "cantidades": random.randint(1, 4)}],
        "nombreCliente": "Cliente de carga",
        "numerosTelefonicos": [{"numero": "3001234567", "tipo": "principal"}],
        "direccionDetallada": "Calle 1 # 2-3",
        "tipoEnvio": random.choice(["nacional", "bogota"]),
        "precioTotal": total,
        "abonodinero": total // 2,
    }


class SellerUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Register and log in a seller for this simulated client
        email = f"seller_{random.randint(1, 1_000_000)}@example.com"
        self.client.post("/register", json={"name": email.split("@")[0], "email": email, "password": "secret1"})
        r = self.client.post("/auth/login", json={"email": email, "password": "secret1"})
        self.headers = {"Authorization": f"Bearer {r.json()['access_token']}"} if r.status_code == 200 else None

    @task(3)
    def create_order(self):
        if not self.headers:
            return
        self.client.post("/pedidos", json=sample_order(), headers=self.headers)

    @task(1)
    def list_orders(self):
        if not self.headers:
            return
        self.client.get("/pedidos", params={"page": 1, "limit": 20}, headers=self.headers, name="/pedidos")
