#!/usr/bin/env python3
"""
cli.py: manage back-office administrators

    python -m casalar.cli create admin --name "Administrador"
    python -m casalar.cli list
    python -m casalar.cli set-password admin
    python -m casalar.cli delete admin
"""
import argparse, getpass, sys

from casalar.core.errors import StoreError
from casalar.db.session import SessionLocal
from casalar.services import admins


def _password(args) -> str:
    if args.password:
        return args.password
    first = getpass.getpass('Senha: ')
    if first != getpass.getpass('Confirme a senha: '):
        raise SystemExit('As senhas não conferem')
    return first


def cmd_create(db, args):
    admin = admins.create_admin(db, args.username, _password(args), name=args.name, overwrite=args.update)
    print(f"Administrador {admin.username} (id={admin.id}) salvo.")


def cmd_list(db, args):
    rows = admins.list_admins(db)
    if not rows:
        print('Nenhum administrador encontrado.')
        return
    print(f"{'ID':<5} {'Usuário':<16} {'Nome':<24} {'Último acesso':<20}")
    for a in rows:
        last = a.last_login_at.strftime('%Y-%m-%d %H:%M') if a.last_login_at else 'Nunca'
        print(f"{a.id:<5} {a.username:<16} {(a.name or ''):<24} {last:<20}")
    print(f"\nTotal de administradores: {len(rows)}")


def cmd_set_password(db, args):
    admins.set_password(db, args.username, _password(args))
    print(f"Senha de {args.username} atualizada.")


def cmd_delete(db, args):
    admins.delete_admin(db, args.username)
    print(f"Administrador {args.username} removido.")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='casalar-admin', description='Gerenciar administradores')
    sub = ap.add_subparsers(dest='command', required=True)

    p = sub.add_parser('create', help='create (or with --update, overwrite) an administrator')
    p.add_argument('username')
    p.add_argument('--name', default=None)
    p.add_argument('--password', default=None, help='prompted when omitted')
    p.add_argument('--update', action='store_true', help='overwrite an existing administrator')
    p.set_defaults(func=cmd_create)

    p = sub.add_parser('list', help='list administrators')
    p.set_defaults(func=cmd_list)

    p = sub.add_parser('set-password', help='change an administrator password')
    p.add_argument('username')
    p.add_argument('--password', default=None, help='prompted when omitted')
    p.set_defaults(func=cmd_set_password)

    p = sub.add_parser('delete', help='remove an administrator')
    p.add_argument('username')
    p.set_defaults(func=cmd_delete)
    return ap


def main(argv=None, session_factory=SessionLocal) -> int:
    args = build_parser().parse_args(argv)
    db = session_factory()
    try:
        args.func(db, args)
    except StoreError as e:
        print(f"Erro: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
