from decimal import Decimal

from casalar.core.ratelimit import MemoryRateLimiter
from casalar.db.models import Customer, Product
from casalar.main import app
from casalar.services import admins


def test_health(client):
    r = client.get('/api/health')
    assert r.status_code == 200
    assert r.json()['status'] == 'OK'


def test_unknown_route_uses_error_envelope(client):
    r = client.get('/api/nada')
    assert r.status_code == 404
    assert r.json() == {'success': False, 'message': 'Rota não encontrada'}


# --- products ---

def test_public_product_listing(client, make_product):
    make_product(name='Caneca', category='Cozinha')
    make_product(name='Toalha', category='Banho')
    make_product(name='Oculta', active=False)

    body = client.get('/api/produtos', params={'categoria': 'coz'}).json()
    assert body['success'] is True
    assert [p['nome'] for p in body['produtos']] == ['Caneca']
    assert body['pagination'] == {'page': 1, 'limit': 12, 'total': 1, 'pages': 1}
    assert set(body['produtos'][0]) >= {'id', 'nome', 'descricao', 'preco', 'categoria', 'estoque', 'ativo'}


def test_get_product_hides_inactive(client, make_product):
    live = make_product(name='Vaso')
    gone = make_product(active=False)
    assert client.get(f'/api/produtos/{live.id}').json()['produto']['nome'] == 'Vaso'
    r = client.get(f'/api/produtos/{gone.id}')
    assert r.status_code == 404
    assert r.json()['success'] is False


def test_product_mutations_require_admin(client, make_product):
    p = make_product()
    assert client.post('/api/produtos', json={'nome': 'X', 'preco': 1, 'categoria': 'Y', 'estoque': 1}).status_code == 401
    assert client.put(f'/api/produtos/{p.id}', json={'nome': 'Z'}).status_code == 401
    r = client.delete(f'/api/produtos/{p.id}', headers={'Authorization': 'Bearer not-a-token'})
    assert r.status_code == 401
    assert r.json()['success'] is False


def test_admin_product_lifecycle(client, admin_headers, db):
    r = client.post('/api/produtos', headers=admin_headers,
                    json={'nome': 'Escorredor', 'descricao': 'Inox', 'preco': '89.90', 'categoria': 'Cozinha', 'estoque': 7})
    assert r.status_code == 201
    pid = r.json()['produto']['id']

    r = client.put(f'/api/produtos/{pid}', headers=admin_headers, json={'estoque': 3})
    assert r.status_code == 200
    produto = r.json()['produto']
    assert produto['estoque'] == 3
    assert produto['nome'] == 'Escorredor'
    assert Decimal(str(produto['preco'])) == Decimal('89.90')

    r = client.delete(f'/api/produtos/{pid}', headers=admin_headers)
    assert r.json() == {'success': True, 'message': 'Produto deletado com sucesso'}
    assert client.get(f'/api/produtos/{pid}').status_code == 404
    assert db.get(Product, pid) is not None


def test_create_product_validation(client, admin_headers):
    r = client.post('/api/produtos', headers=admin_headers,
                    json={'nome': 'Sem preço', 'preco': 0, 'categoria': 'Cozinha', 'estoque': 1})
    assert r.status_code == 400
    body = r.json()
    assert body['success'] is False
    assert body['message'] == 'Dados inválidos'
    assert body['errors']


def test_categories_and_low_stock(client, admin_headers, make_product):
    make_product(category='Banho', stock=1)
    make_product(category='Cozinha', stock=50)
    assert client.get('/api/produtos/categorias/distinct').json()['categorias'] == ['Banho', 'Cozinha']
    assert client.get('/api/produtos/low-stock').status_code == 401
    low = client.get('/api/produtos/low-stock', headers=admin_headers).json()
    assert [p['categoria'] for p in low['produtos']] == ['Banho']


# --- orders ---

def test_checkout_over_http(client, db, make_product, make_customer):
    cust = make_customer(points=100)
    p = make_product(name='Aspirador', price='200.00', stock=2)

    r = client.post('/api/pedidos', json={
        'usuario_id': cust.id,
        'itens': [{'produto_id': p.id, 'quantidade': 1}],
        'pontos_utilizados': 100,
    })

    assert r.status_code == 201
    body = r.json()
    assert body['success'] is True
    pedido = body['pedido']
    assert Decimal(str(pedido['total'])) == Decimal('100')
    assert Decimal(str(pedido['desconto_aplicado'])) == Decimal('100')
    assert Decimal(str(pedido['total_original'])) == Decimal('200')
    assert pedido['pontos_gerados'] == 2
    assert pedido['novos_pontos_usuario'] == 2
    assert pedido['status'] == 'confirmado'
    db.expire_all()
    assert db.get(Product, p.id).stock == 1
    assert db.get(Customer, cust.id).points == 2


def test_checkout_errors_over_http(client, make_product, make_customer):
    cust = make_customer(points=1)
    p = make_product(name='Tapete', stock=1)

    r = client.post('/api/pedidos', json={'usuario_id': cust.id, 'itens': []})
    assert r.status_code == 400

    r = client.post('/api/pedidos', json={'usuario_id': cust.id, 'itens': [{'produto_id': p.id, 'quantidade': 2}]})
    assert r.status_code == 400
    assert r.json() == {'success': False, 'message': 'Estoque insuficiente para o produto Tapete',
                        'product_id': p.id, 'available': 1}

    r = client.post('/api/pedidos', json={'usuario_id': cust.id, 'itens': [{'produto_id': p.id, 'quantidade': 1}],
                                          'pontos_utilizados': 2})
    assert r.status_code == 400
    assert r.json()['message'] == 'Pontos insuficientes'

    r = client.post('/api/pedidos', json={'usuario_id': cust.id, 'itens': [{'produto_id': 999, 'quantidade': 1}]})
    assert r.status_code == 404
    assert '999' in r.json()['message']

    r = client.post('/api/pedidos', json={'usuario_id': 999, 'itens': [{'produto_id': p.id, 'quantidade': 1}]})
    assert r.status_code == 404


def test_order_detail_and_listing(client, admin_headers, make_product, make_customer):
    cust = make_customer(name='Ana Souza')
    p = make_product(name='Cesto', price='15.00', stock=10)
    oid = client.post('/api/pedidos', json={'usuario_id': cust.id,
                                            'itens': [{'produto_id': p.id, 'quantidade': 3}]}).json()['pedido']['id']

    first = client.get(f'/api/pedidos/{oid}').json()
    assert first == client.get(f'/api/pedidos/{oid}').json()
    pedido = first['pedido']
    assert pedido['usuario_nome'] == 'Ana Souza'
    assert pedido['itens'][0]['produto_nome'] == 'Cesto'
    assert Decimal(str(pedido['itens'][0]['subtotal'])) == Decimal('45')
    assert client.get('/api/pedidos/999').status_code == 404

    assert client.get('/api/pedidos').status_code == 401
    listing = client.get('/api/pedidos', headers=admin_headers, params={'status': ''}).json()
    assert listing['pagination']['total'] == 1
    assert listing['pedidos'][0]['usuario_email'] == cust.email

    r = client.patch(f'/api/pedidos/{oid}/status', headers=admin_headers, json={'status': 'enviado'})
    assert r.json()['pedido']['status'] == 'enviado'
    assert client.get('/api/pedidos', headers=admin_headers, params={'status': 'confirmado'}).json()['pedidos'] == []
    assert client.get('/api/pedidos', headers=admin_headers, params={'status': 'xyz'}).status_code == 400


# --- customers ---

def test_customer_registration_and_points(client, admin_headers, make_product):
    r = client.post('/api/usuarios', json={'nome': 'Carla', 'email': 'carla@example.com', 'telefone': '11999990000'})
    assert r.status_code == 201
    cid = r.json()['usuario']['id']
    assert r.json()['usuario']['pontos_cashback'] == 0
    assert client.get(f'/api/usuarios/{cid}').json()['usuario']['email'] == 'carla@example.com'

    dup = client.post('/api/usuarios', json={'nome': 'Outra', 'email': 'carla@example.com'})
    assert dup.status_code == 400
    assert dup.json()['message'] == 'Email já cadastrado'

    assert client.post('/api/usuarios', json={'nome': 'X', 'email': 'nao-e-email'}).status_code == 400

    p = make_product(price='120.00', stock=5)
    client.post('/api/pedidos', json={'usuario_id': cid, 'itens': [{'produto_id': p.id, 'quantidade': 1}]})
    assert client.get(f'/api/usuarios/{cid}/pontos').json() == {'success': True, 'pontos': 2}

    history = client.get(f'/api/usuarios/{cid}/pedidos').json()
    assert history['pagination']['total'] == 1
    assert history['pedidos'][0]['itens'][0]['quantidade'] == 1

    assert client.get('/api/usuarios/999/pontos').status_code == 404
    assert client.get('/api/usuarios/999/pedidos').status_code == 404


def test_customer_listing_sort_and_search(client, admin_headers, make_customer):
    make_customer(name='Bruno', points=5)
    make_customer(name='Amanda', points=20)
    make_customer(name='Carlos', points=5)

    assert client.get('/api/usuarios').status_code == 401
    default = client.get('/api/usuarios', headers=admin_headers).json()
    assert [u['nome'] for u in default['usuarios']] == ['Amanda', 'Bruno', 'Carlos']
    by_name = client.get('/api/usuarios', headers=admin_headers, params={'sort': 'nome_desc'}).json()
    assert [u['nome'] for u in by_name['usuarios']] == ['Carlos', 'Bruno', 'Amanda']
    found = client.get('/api/usuarios', headers=admin_headers, params={'busca': 'carl'}).json()
    assert [u['nome'] for u in found['usuarios']] == ['Carlos']
    paged = client.get('/api/usuarios', headers=admin_headers, params={'limit': 500}).json()
    assert paged['pagination']['limit'] == 100


# --- stats ---

def test_stats_endpoints(client, admin_headers, make_product, make_customer):
    cust = make_customer()
    p = make_product(price='60.00', stock=5)
    client.post('/api/pedidos', json={'usuario_id': cust.id, 'itens': [{'produto_id': p.id, 'quantidade': 1}]})

    assert client.get('/api/stats/dashboard').status_code == 401
    data = client.get('/api/stats/dashboard', headers=admin_headers).json()['data']
    assert data['totalOrders'] == 1
    assert data['totalCustomers'] == 1
    assert data['totalProducts'] == 1
    assert Decimal(str(data['totalRevenue'])) == Decimal('60')

    ranged = client.get('/api/stats/dashboard', headers=admin_headers,
                        params={'startDate': '2000-01-01', 'endDate': '2000-12-31'}).json()['data']
    assert ranged['totalOrders'] == 0

    series = client.get('/api/stats/revenue-monthly', headers=admin_headers).json()['data']
    assert len(series) == 12
    assert Decimal(str(series[-1]['revenue'])) == Decimal('60')


# --- auth ---

def test_admin_login_flow(client, db):
    admins.create_admin(db, 'gerente', 'segredo123', name='Gerente')

    bad = client.post('/api/auth/login', json={'usuario': 'gerente', 'senha': 'errada1'})
    assert bad.status_code == 401
    assert bad.json() == {'success': False, 'message': 'Credenciais inválidas'}

    r = client.post('/api/auth/login', json={'usuario': 'gerente', 'senha': 'segredo123'})
    assert r.status_code == 200
    body = r.json()
    assert body['admin']['usuario'] == 'gerente'
    headers = {'Authorization': f"Bearer {body['token']}"}

    assert client.get('/api/auth/verify', headers=headers).json()['user']['usuario'] == 'gerente'
    assert client.get('/api/stats/dashboard', headers=headers).status_code == 200
    assert client.post('/api/auth/logout', headers=headers).json()['success'] is True
    assert client.get('/api/auth/verify').status_code == 401


def test_short_password_is_rejected(client):
    assert client.post('/api/auth/login', json={'usuario': 'a', 'senha': '123'}).status_code == 400


# --- rate limiting ---

def test_rate_limit_applies_to_api_paths(client):
    app.state.rate_limiter = MemoryRateLimiter(limit=2, window_seconds=60)
    assert client.get('/api/health').status_code == 200
    assert client.get('/api/health').status_code == 200
    r = client.get('/api/health')
    assert r.status_code == 429
    assert r.json()['success'] is False
    assert client.get('/v1/_info').status_code == 200
