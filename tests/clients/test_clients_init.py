from unittest import IsolatedAsyncioTestCase
from unittest.mock import patch


class TestClientsInit(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        import clients

        self.mod = clients
        self.mod._client = None

    async def asyncTearDown(self):
        self.mod._client = None

    async def test_get_and_close_client(self):
        with patch("clients.httpx.AsyncClient", autospec=True) as ac:
            client = self.mod.get_client()
            ac.assert_called_once()
            self.assertEqual(ac.call_args.kwargs["base_url"], "http://optimizer")
            # Singleton
            self.assertIs(self.mod.get_client(), client)

            await self.mod.close_client()
            client.aclose.assert_awaited()
            self.assertIsNone(self.mod._client)

    async def test_close_client_without_client_is_noop(self):
        await self.mod.close_client()
        self.assertIsNone(self.mod._client)

    async def test_get_optimizer_client_shares_global_client(self):
        with patch("clients.httpx.AsyncClient", autospec=True):
            optimizer = self.mod.get_optimizer_client()
            self.assertIs(optimizer.client, self.mod.get_client())
            self.assertEqual(optimizer.base_url, "http://optimizer")
