from k8s_discovery.cli import main

main()
